"""Scoring system module for calculating the GitProof developer score"""

import logging
from datetime import datetime, timezone
from typing import Dict, Callable, Optional, Tuple

from . import metrics
from .models import CanonicalProfileRecord, MetricResult, ScoringResult

logger = logging.getLogger(__name__)

METRIC_WEIGHTS: Dict[str, float] = {
    "productivity": 0.25,
    "reliability": 0.15,
    "impact": 0.25,
    "mastery": 0.15,
    "endurance": 0.20,
}

# Grade and percentile are two separate step functions over the same axis;
# both ladders are evaluated top-down with inclusive lower bounds.
GRADE_THRESHOLDS: Tuple[Tuple[float, str], ...] = (
    (9.0, "S"),
    (7.5, "A"),
    (6.0, "B"),
    (4.5, "C"),
    (3.0, "D"),
)
FALLBACK_GRADE = "F"

PERCENTILE_THRESHOLDS: Tuple[Tuple[float, int], ...] = (
    (9.0, 99),
    (8.0, 95),
    (7.0, 85),
    (6.0, 70),
    (5.0, 50),
    (4.0, 30),
    (3.0, 15),
)
FALLBACK_PERCENTILE = 5


def aggregate(metric_results: Dict[str, MetricResult]) -> float:
    """Weighted sum of the five metrics rounded to 2 decimals"""
    missing = [key for key in METRIC_WEIGHTS if key not in metric_results]
    if missing:
        raise ValueError(f"Missing metric results: {', '.join(missing)}")
    weighted_sum = sum(metric_results[key].value * weight for key, weight in METRIC_WEIGHTS.items())
    return metrics.round_half_up(weighted_sum, 2)


def score_to_grade(score: float) -> str:
    """Convert an aggregate score to a letter grade"""
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return FALLBACK_GRADE


def score_to_percentile(score: float) -> int:
    """Approximate percentile for an aggregate score"""
    for threshold, percentile in PERCENTILE_THRESHOLDS:
        if score >= threshold:
            return percentile
    return FALLBACK_PERCENTILE


class ScoringSystem:
    """Calculates metric, aggregate, grade and percentile for a profile record

    ``clock`` returns the current time; inject a fixed clock for
    reproducible results.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def years_active(self, record: CanonicalProfileRecord, now: Optional[datetime] = None) -> float:
        return metrics.years_between(record.created_at, now or self.clock())

    def calculate_scores(self, record: CanonicalProfileRecord, now: Optional[datetime] = None) -> ScoringResult:
        """Calculate all metric scores and the final rating"""
        years_active = self.years_active(record, now)

        metric_results = {}
        for key, calculator in metrics.CALCULATORS.items():
            metric_results[key] = calculator(record, years_active)
            logger.debug("%s %s=%.1f", record.username, key, metric_results[key].value)

        final_score = aggregate(metric_results)
        return ScoringResult(
            score=final_score,
            grade=score_to_grade(final_score),
            percentile=score_to_percentile(final_score),
            metrics=metric_results,
        )
