"""Data models for production readiness scoring."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Sequence


class TestKind(str, Enum):
    """How a readiness check is executed."""

    __test__ = False

    AUTOMATED = "automated"
    MANUAL = "manual"
    HYBRID = "hybrid"


@dataclass(frozen=True)
class TestDefinition:
    """A single named readiness check."""

    __test__ = False

    id: str
    name: str
    description: str
    kind: TestKind
    estimated_duration: int
    success_criteria: str
    dependencies: frozenset[str] = field(default_factory=frozenset)
    tags: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Test definition id cannot be empty")
        if self.estimated_duration < 0:
            msg = f"Test '{self.id}' has a negative estimated duration"
            raise ValueError(msg)


@dataclass(frozen=True)
class TestCategory:
    """A weighted grouping of readiness checks."""

    __test__ = False

    id: str
    name: str
    description: str
    weight: float
    critical_path: bool
    tests: tuple[TestDefinition, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Category id cannot be empty")
        if self.weight < 0:
            msg = f"Category '{self.id}' has a negative weight"
            raise ValueError(msg)


@dataclass(frozen=True)
class CategoryScore:
    """Observed outcome for one category in one run."""

    category_id: str
    score: int
    passed: int
    total: int
    critical_failures: int = 0
    warnings: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.score <= 100:
            raise ValueError(f"Score for '{self.category_id}' must be within 0-100, got {self.score}")
        if self.passed < 0 or self.total < 0:
            raise ValueError(f"Counts for '{self.category_id}' must be non-negative")
        if self.passed > self.total:
            raise ValueError(
                f"Category '{self.category_id}' reports {self.passed} passed out of {self.total}"
            )
        if self.critical_failures < 0 or self.warnings < 0:
            raise ValueError(f"Failure counts for '{self.category_id}' must be non-negative")

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "CategoryScore":
        """Build a score from a loosely typed mapping (YAML/JSON input)."""

        category_id = payload.get("category_id", payload.get("categoryId"))
        if not category_id:
            raise ValueError("Category score entry is missing 'category_id'")
        return cls(
            category_id=str(category_id),
            score=int(payload["score"]),
            passed=int(payload.get("passed", 0)),
            total=int(payload.get("total", 0)),
            critical_failures=int(payload.get("critical_failures", payload.get("criticalFailures", 0))),
            warnings=int(payload.get("warnings", 0)),
        )

    def to_dict(self) -> Mapping[str, Any]:
        return {
            "category_id": self.category_id,
            "score": self.score,
            "passed": self.passed,
            "total": self.total,
            "critical_failures": self.critical_failures,
            "warnings": self.warnings,
        }


@dataclass(frozen=True)
class ProductionReadinessScore:
    """Run-level release verdict."""

    overall: int
    categories: Sequence[CategoryScore]
    timestamp: datetime
    ready_for_production: bool
    blockers: Sequence[str] = field(default_factory=tuple)
    warnings: Sequence[str] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.ready_for_production and self.blockers:
            raise ValueError("A run with blockers cannot be ready for production")

    def to_dict(self) -> Mapping[str, Any]:
        """Return a JSON-serialisable payload for the verdict."""

        return {
            "overall": self.overall,
            "timestamp": self.timestamp.isoformat(),
            "ready_for_production": self.ready_for_production,
            "blockers": list(self.blockers),
            "warnings": list(self.warnings),
            "categories": [dict(score.to_dict()) for score in self.categories],
        }
