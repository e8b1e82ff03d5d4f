"""Registry of weighted readiness categories and release thresholds."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Optional

import yaml

from .catalog import DEFAULT_CATEGORIES
from .models import TestCategory, TestDefinition, TestKind

OVERALL_PASS_RATE = 95
CRITICAL_CATEGORY_PASS_RATE = 100
MAX_CRITICAL_FAILURES = 0
MAX_HIGH_SEVERITY_WARNINGS = 3


@dataclass(frozen=True)
class ReadinessThresholds:
    """Release gate thresholds applied by the aggregator."""

    overall_pass_rate: int = OVERALL_PASS_RATE
    critical_category_pass_rate: int = CRITICAL_CATEGORY_PASS_RATE
    max_critical_failures: int = MAX_CRITICAL_FAILURES
    max_high_severity_warnings: int = MAX_HIGH_SEVERITY_WARNINGS

    def to_dict(self) -> Mapping[str, int]:
        return {
            "overall_pass_rate": self.overall_pass_rate,
            "critical_category_pass_rate": self.critical_category_pass_rate,
            "max_critical_failures": self.max_critical_failures,
            "max_high_severity_warnings": self.max_high_severity_warnings,
        }


DEFAULT_THRESHOLDS = ReadinessThresholds()


class CategoryNotFoundError(LookupError):
    """Raised when a category id is not registered."""

    def __init__(self, category_id: str) -> None:
        super().__init__(f"category not found: '{category_id}'")
        self.category_id = category_id


class CategoryRegistry:
    """Immutable, id-indexed collection of test categories."""

    def __init__(self, categories: Iterable[TestCategory]) -> None:
        self._categories = tuple(categories)
        self._by_id: dict[str, TestCategory] = {}
        self._tests: dict[str, TestDefinition] = {}
        for category in self._categories:
            if category.id in self._by_id:
                raise ValueError(f"Category '{category.id}' is registered more than once")
            self._by_id[category.id] = category
            for test in category.tests:
                if test.id in self._tests:
                    raise ValueError(f"Test '{test.id}' is registered more than once")
                self._tests[test.id] = test

    @property
    def categories(self) -> tuple[TestCategory, ...]:
        return self._categories

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(category.id for category in self._categories)

    @property
    def total_weight(self) -> float:
        return sum(category.weight for category in self._categories)

    def get(self, category_id: str) -> TestCategory:
        try:
            return self._by_id[category_id]
        except KeyError:
            raise CategoryNotFoundError(category_id) from None

    def find(self, category_id: str) -> Optional[TestCategory]:
        return self._by_id.get(category_id)

    def test(self, test_id: str) -> Optional[TestDefinition]:
        return self._tests.get(test_id)

    def tests_by_kind(self) -> Mapping[TestKind, int]:
        counts = Counter(test.kind for test in self._tests.values())
        return {kind: counts.get(kind, 0) for kind in TestKind}

    def __iter__(self) -> Iterator[TestCategory]:
        return iter(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._by_id


def _parse_test(entry: Mapping[str, Any]) -> TestDefinition:
    return TestDefinition(
        id=str(entry["id"]),
        name=str(entry.get("name", entry["id"])),
        description=str(entry.get("description", "")),
        kind=TestKind(entry.get("kind", entry.get("type", TestKind.AUTOMATED.value))),
        estimated_duration=int(entry.get("estimated_duration", 0)),
        success_criteria=str(entry.get("success_criteria", "")),
        dependencies=frozenset(entry.get("dependencies", []) or []),
        tags=frozenset(entry.get("tags", []) or []),
    )


def _parse_category(entry: Mapping[str, Any]) -> TestCategory:
    return TestCategory(
        id=str(entry["id"]),
        name=str(entry.get("name", entry["id"])),
        description=str(entry.get("description", "")),
        weight=float(entry.get("weight", 0)),
        critical_path=bool(entry.get("critical_path", False)),
        tests=tuple(_parse_test(test) for test in entry.get("tests", []) or []),
    )


def load_registry(path: Path) -> CategoryRegistry:
    """Load a category catalog from a YAML document."""

    payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    entries = payload.get("categories", []) if isinstance(payload, Mapping) else payload
    if not entries:
        raise ValueError(f"No categories defined in {path}")
    return CategoryRegistry(_parse_category(entry) for entry in entries)


def default_registry() -> CategoryRegistry:
    """Return the built-in production readiness registry."""

    return CategoryRegistry(DEFAULT_CATEGORIES)


__all__ = [
    "CRITICAL_CATEGORY_PASS_RATE",
    "CategoryNotFoundError",
    "CategoryRegistry",
    "DEFAULT_THRESHOLDS",
    "MAX_CRITICAL_FAILURES",
    "MAX_HIGH_SEVERITY_WARNINGS",
    "OVERALL_PASS_RATE",
    "ReadinessThresholds",
    "default_registry",
    "load_registry",
]
