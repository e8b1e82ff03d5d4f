"""Category registry and weighted release scoring."""

from .aggregator import compute_readiness, round_half_up
from .models import (
    CategoryScore,
    ProductionReadinessScore,
    TestCategory,
    TestDefinition,
    TestKind,
)
from .registry import (
    CRITICAL_CATEGORY_PASS_RATE,
    DEFAULT_THRESHOLDS,
    MAX_CRITICAL_FAILURES,
    MAX_HIGH_SEVERITY_WARNINGS,
    OVERALL_PASS_RATE,
    CategoryNotFoundError,
    CategoryRegistry,
    ReadinessThresholds,
    default_registry,
    load_registry,
)

__all__ = [
    "CRITICAL_CATEGORY_PASS_RATE",
    "CategoryNotFoundError",
    "CategoryRegistry",
    "CategoryScore",
    "DEFAULT_THRESHOLDS",
    "MAX_CRITICAL_FAILURES",
    "MAX_HIGH_SEVERITY_WARNINGS",
    "OVERALL_PASS_RATE",
    "ProductionReadinessScore",
    "ReadinessThresholds",
    "TestCategory",
    "TestDefinition",
    "TestKind",
    "compute_readiness",
    "default_registry",
    "load_registry",
    "round_half_up",
]
