"""Weighted aggregation of category scores into a release verdict."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from .models import CategoryScore, ProductionReadinessScore
from .registry import DEFAULT_THRESHOLDS, CategoryRegistry, ReadinessThresholds

logger = logging.getLogger(__name__)

NO_VALID_SCORES = "no valid category scores"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, sending exact halves away from zero."""

    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_readiness(
    category_scores: Iterable[CategoryScore],
    registry: CategoryRegistry,
    *,
    thresholds: ReadinessThresholds = DEFAULT_THRESHOLDS,
    timestamp: Optional[datetime] = None,
) -> ProductionReadinessScore:
    """Combine per-category scores into a weighted release verdict.

    Scores whose category is not registered are skipped and contribute nothing.
    Blocker and warning rules are evaluated independently for every resolved
    category, so one run can accumulate several blockers.
    """

    scores = tuple(category_scores)
    weighted_sum = 0.0
    total_weight = 0.0
    blockers: list[str] = []
    warnings: list[str] = []

    for score in scores:
        category = registry.find(score.category_id)
        if category is None:
            logger.warning(
                "Skipping score for unregistered category",
                extra={"category_id": score.category_id},
            )
            continue

        weighted_sum += score.score * category.weight
        total_weight += category.weight

        if category.critical_path and score.score < thresholds.critical_category_pass_rate:
            blockers.append(
                f"Critical category '{category.name}' [{category.id}] failed ({score.score}%)"
            )
        if score.critical_failures > thresholds.max_critical_failures:
            blockers.append(
                f"{score.critical_failures} critical failures in '{category.name}' [{category.id}]"
            )
        if score.warnings > thresholds.max_high_severity_warnings:
            warnings.append(
                f"{score.warnings} warnings in '{category.name}' [{category.id}] "
                f"(max: {thresholds.max_high_severity_warnings})"
            )

    if total_weight > 0:
        overall = round_half_up(weighted_sum / total_weight)
    else:
        overall = 0
        blockers.append(NO_VALID_SCORES)

    ready = overall >= thresholds.overall_pass_rate and not blockers
    return ProductionReadinessScore(
        overall=overall,
        categories=scores,
        timestamp=timestamp or datetime.now(timezone.utc),
        ready_for_production=ready,
        blockers=tuple(blockers),
        warnings=tuple(warnings),
    )


__all__ = ["NO_VALID_SCORES", "compute_readiness", "round_half_up"]
