"""Render readiness verdicts and raw check results into reports."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Optional, Sequence

from ..scoring.aggregator import round_half_up
from ..scoring.models import CategoryScore, ProductionReadinessScore
from ..scoring.registry import DEFAULT_THRESHOLDS, CategoryRegistry, ReadinessThresholds
from .paths import RunPaths
from .utils import write_json

logger = logging.getLogger(__name__)

PASSED_STATUSES = frozenset({"passed", "expected"})
FAILED_STATUSES = frozenset({"failed", "unexpected", "timedOut", "interrupted"})
FLAKY_STATUS = "flaky"
SKIPPED_STATUSES = frozenset({"skipped"})

READY_BANNER = "✅ **READY FOR PRODUCTION**"
NOT_READY_BANNER = "❌ **NOT READY FOR PRODUCTION**"
NO_FAILURES_MESSAGE = "No failing checks recorded. The run is clear for release review."
ARTIFACT_KINDS = ("screenshot", "video", "trace", "other")
PRIORITY_ORDER = ("critical", "high", "medium", "low")

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class CheckOutcome:
    """One leaf check from the raw result tree."""

    title: str
    suite_path: tuple[str, ...]
    status: str
    flaky: bool = False
    critical: bool = False
    warning: bool = False
    error: Optional[str] = None
    category_id: Optional[str] = None
    attachments: tuple[str, ...] = ()
    retries: int = 0

    @property
    def suite_title(self) -> str:
        return self.suite_path[0] if self.suite_path else ""

    @property
    def full_title(self) -> str:
        return " > ".join((*self.suite_path, self.title))


@dataclass
class CategoryTally:
    category_id: str
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    flaky: int = 0
    critical_failures: int = 0
    warnings: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed

    def add(self, outcome: CheckOutcome) -> None:
        if outcome.status == "skipped":
            self.skipped += 1
            return
        if outcome.status == "passed":
            self.passed += 1
        else:
            self.failed += 1
            if outcome.critical:
                self.critical_failures += 1
        if outcome.flaky:
            self.flaky += 1
            self.warnings += 1
        if outcome.warning:
            self.warnings += 1


# ---------------------------------------------------------------------------
# Flattening and classification
# ---------------------------------------------------------------------------


def _normalise_status(raw_status: Optional[str]) -> tuple[str, bool]:
    if raw_status in PASSED_STATUSES:
        return "passed", False
    if raw_status == FLAKY_STATUS:
        return "passed", True
    if raw_status in FAILED_STATUSES:
        return "failed", False
    if raw_status in SKIPPED_STATUSES:
        return "skipped", False
    logger.warning("Treating unknown check status as failed", extra={"status": raw_status})
    return "failed", False


def _markers(spec: Mapping[str, Any], test: Mapping[str, Any]) -> tuple[set[str], Optional[str]]:
    markers: set[str] = set()
    category: Optional[str] = None
    for tag in (*spec.get("tags", ()), *test.get("tags", ())):
        markers.add(str(tag).lstrip("@").lower())
    for annotation in test.get("annotations", ()) or ():
        kind = str(annotation.get("type", "")).lower()
        if kind == "category" and annotation.get("description"):
            category = str(annotation["description"])
        elif kind:
            markers.add(kind)
    return markers, category


def _error_message(test: Mapping[str, Any], results: Sequence[Mapping[str, Any]]) -> Optional[str]:
    for candidate in (results[-1] if results else {}, test):
        error = candidate.get("error")
        if isinstance(error, Mapping):
            error = error.get("message")
        if error is None:
            continue
        lines = str(error).strip().splitlines()
        if lines:
            return lines[0]
    return None


def _attachment_kind(attachment: Mapping[str, Any]) -> str:
    name = str(attachment.get("name", "")).lower()
    content_type = str(attachment.get("contentType", "")).lower()
    if name == "screenshot" or content_type.startswith("image/"):
        return "screenshot"
    if name == "video" or content_type.startswith("video/"):
        return "video"
    if name == "trace" or content_type == "application/zip":
        return "trace"
    return "other"


def _walk_suite(suite: Mapping[str, Any], trail: tuple[str, ...]) -> Iterator[CheckOutcome]:
    title = suite.get("title") or suite.get("file") or ""
    path = (*trail, str(title)) if title else trail
    for spec in suite.get("specs", ()) or ():
        spec_category = spec.get("category")
        for test in spec.get("tests", ()) or ():
            results = test.get("results", ()) or ()
            raw_status = test.get("status") or (results[-1].get("status") if results else None)
            status, flaky = _normalise_status(raw_status)
            markers, annotated_category = _markers(spec, test)
            attachments = tuple(
                _attachment_kind(attachment)
                for result in results
                for attachment in result.get("attachments", ()) or ()
            )
            yield CheckOutcome(
                title=str(spec.get("title", "")),
                suite_path=path,
                status=status,
                flaky=flaky,
                critical="critical" in markers,
                warning="warning" in markers,
                error=_error_message(test, results) if status == "failed" else None,
                category_id=test.get("category") or spec_category or annotated_category,
                attachments=attachments,
                retries=max(len(results) - 1, 0),
            )
    for child in suite.get("suites", ()) or ():
        yield from _walk_suite(child, path)


def flatten_results(raw_results: Mapping[str, Any]) -> list[CheckOutcome]:
    """Flatten a nested suite/spec/test result tree into leaf outcomes."""

    outcomes: list[CheckOutcome] = []
    for suite in raw_results.get("suites", ()) or ():
        outcomes.extend(_walk_suite(suite, ()))
    return outcomes


def classify_category(
    suite_title: str,
    registry: CategoryRegistry,
    explicit: Optional[str] = None,
) -> Optional[str]:
    """Resolve the category id for a check.

    An explicit category wins. Otherwise the first path segment of the suite
    title is tokenised and the first token naming a registered category is used,
    so ``02-scalability-performance/load.spec.ts`` resolves to ``performance``.
    """

    if explicit:
        if explicit in registry:
            return explicit
        logger.warning("Explicit category is not registered", extra={"category_id": explicit})
        return None
    head = re.split(r"[\\/]", suite_title.strip().lower(), maxsplit=1)[0]
    for token in _TOKEN_SPLIT.split(head):
        if token and token in registry:
            return token
    return None


def tally_by_category(
    outcomes: Iterable[CheckOutcome],
    registry: CategoryRegistry,
) -> dict[str, CategoryTally]:
    """Count outcomes per category. Every registered category gets an entry."""

    tallies = {category.id: CategoryTally(category.id) for category in registry}
    unclassified = 0
    for outcome in outcomes:
        category_id = classify_category(outcome.suite_title, registry, outcome.category_id)
        if category_id is None:
            unclassified += 1
            continue
        tallies[category_id].add(outcome)
    if unclassified:
        logger.warning("Checks without a category were left out of scoring", extra={"count": unclassified})
    return tallies


def scores_from_tally(tallies: Mapping[str, CategoryTally]) -> list[CategoryScore]:
    """Build category scores for every category that executed at least one check."""

    scores: list[CategoryScore] = []
    for tally in tallies.values():
        if tally.total == 0:
            continue
        scores.append(
            CategoryScore(
                category_id=tally.category_id,
                score=round_half_up(tally.passed / tally.total * 100),
                passed=tally.passed,
                total=tally.total,
                critical_failures=tally.critical_failures,
                warnings=tally.warnings,
            )
        )
    return scores


def require_critical_coverage(
    readiness: ProductionReadinessScore,
    registry: CategoryRegistry,
    tallies: Mapping[str, CategoryTally],
) -> ProductionReadinessScore:
    """Block the release for every critical-path category that executed no checks."""

    missing = [
        f"Critical category '{category.name}' [{category.id}] produced no results"
        for category in registry
        if category.critical_path and not (category.id in tallies and tallies[category.id].total)
    ]
    if not missing:
        return readiness
    logger.warning("Critical categories produced no results", extra={"count": len(missing)})
    return replace(
        readiness,
        blockers=(*readiness.blockers, *missing),
        ready_for_production=False,
    )


def derive_recommendations(
    outcomes: Iterable[CheckOutcome],
    readiness: Optional[ProductionReadinessScore] = None,
    registry: Optional[CategoryRegistry] = None,
    *,
    thresholds: ReadinessThresholds = DEFAULT_THRESHOLDS,
) -> list[str]:
    """Priority-ranked recommendations, or a single clearance message when none apply.

    Run-level entries need ``readiness`` and ``registry``: an overall score below
    the release threshold is ``high``, and a critical-path category that failed
    or never ran is ``critical``. Each failing check adds one entry, ``critical``
    when the check or its category is critical and ``medium`` otherwise. The
    order within a priority is stable.
    """

    ranked: list[tuple[str, str]] = []
    if readiness is not None and readiness.overall < thresholds.overall_pass_rate:
        ranked.append(
            (
                "high",
                f"Overall score {readiness.overall}% is below the release threshold of "
                f"{thresholds.overall_pass_rate}%; address failing checks before release",
            )
        )
    if readiness is not None and registry is not None:
        observed = {score.category_id: score.score for score in readiness.categories}
        for category in registry:
            if not category.critical_path:
                continue
            score = observed.get(category.id)
            if score is None:
                ranked.append(
                    (
                        "critical",
                        f"Run the checks of critical category '{category.name}' [{category.id}]; "
                        "it produced no results",
                    )
                )
            elif score < thresholds.critical_category_pass_rate:
                ranked.append(
                    (
                        "critical",
                        f"Fix every failure in critical category '{category.name}' [{category.id}] "
                        f"({score}% < {thresholds.critical_category_pass_rate}%)",
                    )
                )
    for outcome in outcomes:
        if outcome.status != "failed":
            continue
        critical = outcome.critical
        if registry is not None and not critical:
            category_id = classify_category(outcome.suite_title, registry, outcome.category_id)
            category = registry.find(category_id) if category_id else None
            critical = category is not None and category.critical_path
        ranked.append(
            (
                "critical" if critical else "medium",
                f"Fix '{outcome.full_title}': {outcome.error or 'no error captured'}",
            )
        )
    ranked.sort(key=lambda entry: PRIORITY_ORDER.index(entry[0]))
    return [f"[{priority}] {text}" for priority, text in ranked] or [NO_FAILURES_MESSAGE]


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MachineReport:
    metadata: Mapping[str, Any]
    summary: Mapping[str, Any]
    categories: Sequence[Mapping[str, Any]]
    blockers: Sequence[str] = field(default_factory=tuple)
    warnings: Sequence[str] = field(default_factory=tuple)
    recommendations: Sequence[str] = field(default_factory=tuple)
    artifacts: Mapping[str, int] = field(default_factory=dict)

    def to_dict(self) -> Mapping[str, Any]:
        return {
            "metadata": dict(self.metadata),
            "summary": dict(self.summary),
            "categories": [dict(entry) for entry in self.categories],
            "blockers": list(self.blockers),
            "warnings": list(self.warnings),
            "recommendations": list(self.recommendations),
            "artifacts": dict(self.artifacts),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True, ensure_ascii=False)


@dataclass(frozen=True)
class HumanReport:
    markdown: str
    ready_for_production: bool

    def __str__(self) -> str:
        return self.markdown


def _summary(outcomes: Sequence[CheckOutcome]) -> Mapping[str, Any]:
    passed = sum(1 for outcome in outcomes if outcome.status == "passed")
    failed = sum(1 for outcome in outcomes if outcome.status == "failed")
    skipped = sum(1 for outcome in outcomes if outcome.status == "skipped")
    executed = passed + failed
    return {
        "total": len(outcomes),
        "passed": passed,
        "failed": failed,
        "skipped": skipped,
        "flaky": sum(1 for outcome in outcomes if outcome.flaky),
        "pass_rate": round_half_up(passed / executed * 100) if executed else 0,
    }


def _artifact_counts(outcomes: Iterable[CheckOutcome]) -> Mapping[str, int]:
    counts = {kind: 0 for kind in ARTIFACT_KINDS}
    for outcome in outcomes:
        for kind in outcome.attachments:
            counts[kind] += 1
    return counts


def _category_rows(
    registry: CategoryRegistry,
    tallies: Mapping[str, CategoryTally],
) -> list[Mapping[str, Any]]:
    rows: list[Mapping[str, Any]] = []
    for category in registry:
        tally = tallies[category.id]
        if tally.total == 0:
            status, score = "not_run", None
        else:
            status = "fail" if tally.failed else "pass"
            score = round_half_up(tally.passed / tally.total * 100)
        rows.append(
            {
                "id": category.id,
                "name": category.name,
                "weight": category.weight,
                "critical_path": category.critical_path,
                "passed": tally.passed,
                "failed": tally.failed,
                "skipped": tally.skipped,
                "total": tally.total,
                "flaky": tally.flaky,
                "critical_failures": tally.critical_failures,
                "warnings": tally.warnings,
                "score": score,
                "status": status,
            }
        )
    return rows


_GLYPHS = {"pass": "✅", "fail": "❌", "not_run": "⚪"}


def _bullets(items: Sequence[str], empty: str) -> list[str]:
    return [f"- {item}" for item in items] if items else [f"- {empty}"]


def _render_markdown(report: MachineReport, ready: bool) -> str:
    metadata = report.metadata
    summary = report.summary
    lines = [
        "# Production Readiness Summary",
        "",
        f"**Generated**: {metadata['generated_at']}",
        "",
        "## Production Readiness",
        "",
        READY_BANNER if ready else NOT_READY_BANNER,
        "",
        "## Overall Results",
        "",
        f"- **Overall Score**: {metadata['overall']}%",
        f"- **Pass Rate**: {summary['pass_rate']}%",
        f"- **Checks**: {summary['total']} total, {summary['passed']} passed, "
        f"{summary['failed']} failed, {summary['skipped']} skipped, {summary['flaky']} flaky",
        "",
        "## Category Results",
        "",
        "| Category | Weight | Critical | Passed | Score | Status |",
        "| --- | --- | --- | --- | --- | --- |",
    ]
    for row in report.categories:
        score = "n/a" if row["score"] is None else f"{row['score']}%"
        lines.append(
            f"| {row['name']} | {row['weight']:g} | {'yes' if row['critical_path'] else 'no'} "
            f"| {row['passed']}/{row['total']} | {score} | {_GLYPHS[row['status']]} |"
        )
    lines += ["", "## Blockers", ""]
    lines += _bullets(report.blockers, "None")
    lines += ["", "## Warnings", ""]
    lines += _bullets(report.warnings, "None")
    lines += ["", "## Recommendations", ""]
    lines += _bullets(report.recommendations, "None")
    lines += ["", "## Artifacts", ""]
    lines += [f"- **{kind.title()}s**: {report.artifacts.get(kind, 0)}" for kind in ARTIFACT_KINDS]
    return "\n".join(lines) + "\n"


def render_report(
    raw_results: Mapping[str, Any],
    readiness: ProductionReadinessScore,
    registry: CategoryRegistry,
    *,
    thresholds: ReadinessThresholds = DEFAULT_THRESHOLDS,
) -> tuple[MachineReport, HumanReport]:
    """Render the machine and human reports for one run.

    The output depends only on the arguments; the generation time is taken from
    ``readiness.timestamp``.
    """

    outcomes = flatten_results(raw_results)
    tallies = tally_by_category(outcomes, registry)
    machine = MachineReport(
        metadata={
            "generated_at": readiness.timestamp.isoformat(),
            "overall": readiness.overall,
            "ready_for_production": readiness.ready_for_production,
            "thresholds": dict(thresholds.to_dict()),
        },
        summary=_summary(outcomes),
        categories=_category_rows(registry, tallies),
        blockers=tuple(readiness.blockers),
        warnings=tuple(readiness.warnings),
        recommendations=tuple(
            derive_recommendations(outcomes, readiness, registry, thresholds=thresholds)
        ),
        artifacts=_artifact_counts(outcomes),
    )
    human = HumanReport(
        markdown=_render_markdown(machine, readiness.ready_for_production),
        ready_for_production=readiness.ready_for_production,
    )
    return machine, human


def render_unavailable_report(reason: str, generated_at: str) -> HumanReport:
    """Human report written when no results could be loaded."""

    markdown = "\n".join(
        [
            "# Production Readiness Summary",
            "",
            f"**Generated**: {generated_at}",
            "",
            "## Production Readiness",
            "",
            NOT_READY_BANNER,
            "",
            "## Results Unavailable",
            "",
            f"No readiness verdict could be computed: {reason}",
            "",
        ]
    )
    return HumanReport(markdown=markdown, ready_for_production=False)


def write_reports(
    paths: RunPaths,
    machine: Optional[MachineReport],
    human: HumanReport,
) -> list[Path]:
    """Persist the reports under the run's reports directory."""

    written: list[Path] = []
    if machine is not None:
        written.append(write_json(paths.machine_report_path, machine.to_dict()))
    paths.human_report_path.parent.mkdir(parents=True, exist_ok=True)
    paths.human_report_path.write_text(human.markdown, encoding="utf-8")
    written.append(paths.human_report_path)
    return written


__all__ = [
    "CategoryTally",
    "CheckOutcome",
    "HumanReport",
    "MachineReport",
    "NO_FAILURES_MESSAGE",
    "NOT_READY_BANNER",
    "READY_BANNER",
    "classify_category",
    "derive_recommendations",
    "flatten_results",
    "render_report",
    "render_unavailable_report",
    "require_critical_coverage",
    "scores_from_tally",
    "tally_by_category",
    "write_reports",
]
