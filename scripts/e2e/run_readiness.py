"""Run the production readiness checks between setup and teardown.

The check command defaults to Playwright with its JSON reporter; its stdout is
stored as the run's raw result tree so teardown can score it. Any other command
that prints the same tree can be passed instead:

    python scripts/e2e/run_readiness.py npx playwright test src/test/production-readiness
"""

from __future__ import annotations

import subprocess
import sys
from typing import Sequence

from ReadinessEngine.cli.config import load_engine_config
from ReadinessEngine.cli.logging import configure_logging
from ReadinessEngine.lifecycle import LifecycleOrchestrator, SetupError

DEFAULT_COMMAND = ["npx", "playwright", "test", "--reporter=json"]


def main(args: Sequence[str] | None = None) -> int:
    command = list(args if args is not None else sys.argv[1:]) or DEFAULT_COMMAND
    config = load_engine_config()
    configure_logging(config.results_root / "logs" / "e2e.log", config.log_format, config.verbose)
    orchestrator = LifecycleOrchestrator(config)
    try:
        orchestrator.setup()
    except SetupError as exc:
        print(f"[error] setup failed: {exc}", file=sys.stderr)
        return 1
    try:
        with orchestrator.paths.raw_results_path.open("w", encoding="utf-8") as handle:
            subprocess.run(command, stdout=handle, check=False)
    finally:
        summary = orchestrator.teardown()
    print("READY FOR PRODUCTION" if summary.ready_for_production else "NOT READY FOR PRODUCTION")
    return 0 if summary.ready_for_production else 1


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    sys.exit(main())
