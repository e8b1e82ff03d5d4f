"""Utility functions."""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any, Iterable, Mapping, MutableMapping, Optional, Sequence


def write_json(path: Path, payload: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, sort_keys=True, ensure_ascii=False)
        handle.write("\n")
    return path


def read_json(path: Path) -> Optional[MutableMapping[str, Any]]:
    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def copy_existing(sources: Iterable[Path], destination: Path) -> Sequence[Path]:
    """Copy the sources that exist into ``destination`` and return the copies."""

    destination.mkdir(parents=True, exist_ok=True)
    copied: list[Path] = []
    for source in sources:
        if not source.is_file():
            continue
        target = destination / source.name
        shutil.copy2(source, target)
        copied.append(target)
    return copied


def missing_env(names: Iterable[str], env: Mapping[str, str]) -> list[str]:
    return [name for name in names if not env.get(name, "").strip()]
