"""Metric calculators mapping a canonical record to bounded 0-10 sub-scores

Each calculator is a pure function of the record and the number of years
the account has been active, so callers control the clock.
"""

import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict

from .models import CanonicalProfileRecord, MetricResult

SECONDS_PER_YEAR = 60 * 60 * 24 * 365

# Sub-score used in place of a signal the upstream source could not supply
NEUTRAL_SCORE = 5.0
DEFAULT_COMMITS_PER_REPO = 50

KNOWN_FRAMEWORKS = frozenset(['React', 'Vue', 'Angular', 'Django', 'Rails', 'Spring', 'Next.js'])

PROFILE_FIELD_POINTS = (
    ("name", 2.0),
    ("bio", 2.0),
    ("location", 1.5),
    ("company", 1.5),
    ("email", 1.0),
)

DESCRIPTIONS = {
    "productivity": "Total contributions (40%) + volume (30%) + PR activity (20%)",
    "reliability": "Profile completeness (40%) + PR acceptance (30%) + reputation",
    "impact": "Stars earned (40%) + followers (35%) + viral reach (25%)",
    "mastery": "Language diversity (40%) + depth signals (30%) + toolchain (30%)",
    "endurance": "Years active (40%) + contribution streak (40%) + regularity (20%)",
}


def log_scale(value: float, max_expected: float) -> float:
    """Logarithmic 0-10 scale with diminishing returns past ``max_expected``"""
    if value <= 0:
        return 0.0
    scaled = (math.log10(value + 1) / math.log10(max_expected + 1)) * 10
    return _clamp(scaled)


def linear_scale(value: float, max_expected: float) -> float:
    """Linear 0-10 scale capped at ``max_expected``"""
    return _clamp((value / max_expected) * 10)


def round_half_up(value: float, places: int) -> float:
    """Round half away from zero on the exact binary value of ``value``"""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def years_between(start: datetime, end: datetime) -> float:
    """Fractional 365-day years from ``start`` to ``end``, never negative"""
    return max(0.0, (end - start).total_seconds() / SECONDS_PER_YEAR)


def acceptance_rate(record: CanonicalProfileRecord) -> float:
    """Merged share of finished pull requests, 0 when none have finished"""
    stats = record.pr_stats
    if stats is None:
        return 0.0
    finished = stats.merged + stats.closed
    return stats.merged / finished if finished > 0 else 0.0


def profile_completeness(record: CanonicalProfileRecord) -> float:
    score = sum(points for attr, points in PROFILE_FIELD_POINTS if getattr(record, attr))
    if record.blog or record.twitter_username:
        score += 1.0
    if record.hireable:
        score += 1.0
    return min(10.0, score)


def follow_ratio_score(record: CanonicalProfileRecord) -> float:
    if record.followers <= 0:
        return NEUTRAL_SCORE
    return min(10.0, record.followers / max(1, record.following) * 2)


def productivity(record: CanonicalProfileRecord, years_active: float) -> MetricResult:
    contributions = record.total_contributions
    total_prs = record.pr_stats.total if record.pr_stats else 0

    contrib_score = log_scale(contributions, 5000) if contributions is not None else NEUTRAL_SCORE
    repo_score = log_scale(record.public_repos, 100)
    pr_volume_score = log_scale(total_prs, 500)
    if contributions is not None and record.public_repos:
        commits_per_repo = contributions / record.public_repos
    else:
        commits_per_repo = DEFAULT_COMMITS_PER_REPO
    avg_commit_score = linear_scale(commits_per_repo, 100)

    value = (contrib_score * 0.4) + (repo_score * 0.3) + (pr_volume_score * 0.2) + (avg_commit_score * 0.1)
    return _result("productivity", value)


def reliability(record: CanonicalProfileRecord, years_active: float) -> MetricResult:
    value = (
        profile_completeness(record) * 0.4
        + (acceptance_rate(record) * 10) * 0.3
        + follow_ratio_score(record) * 0.15
        + linear_scale(years_active, 8) * 0.15
    )
    return _result("reliability", value)


def impact(record: CanonicalProfileRecord, years_active: float) -> MetricResult:
    stars_score = log_scale(record.total_stars, 1000)
    followers_score = log_scale(record.followers, 10000)
    top_repo_score = log_scale(record.top_repo.stars, 500) if record.top_repo.stars else 0.0
    value = (stars_score * 0.4) + (followers_score * 0.35) + (top_repo_score * 0.25)
    return _result("impact", value)


def mastery(record: CanonicalProfileRecord, years_active: float) -> MetricResult:
    diversity = linear_scale(len(record.top_languages), 8)
    depth = 7.0 if record.repositories else 5.0
    frameworks = 8.0 if any(lang in KNOWN_FRAMEWORKS for lang in record.top_languages) else 5.0
    value = (diversity * 0.4) + (depth * 0.3) + (frameworks * 0.3)
    return _result("mastery", value)


def endurance(record: CanonicalProfileRecord, years_active: float) -> MetricResult:
    years_score = linear_scale(years_active, 10)
    if record.longest_streak is not None:
        streak_score = linear_scale(record.longest_streak, 100)
    else:
        streak_score = NEUTRAL_SCORE
    if record.total_contributions is not None:
        regularity = linear_scale(record.total_contributions / max(1, years_active), 200)
    else:
        regularity = NEUTRAL_SCORE
    value = (years_score * 0.4) + (streak_score * 0.4) + (regularity * 0.2)
    return _result("endurance", value)


CALCULATORS: Dict[str, Callable[[CanonicalProfileRecord, float], MetricResult]] = {
    "productivity": productivity,
    "reliability": reliability,
    "impact": impact,
    "mastery": mastery,
    "endurance": endurance,
}


def _result(key: str, value: float) -> MetricResult:
    return MetricResult(
        label=key.capitalize(),
        value=round_half_up(_clamp(value), 1),
        description=DESCRIPTIONS[key],
    )


def _clamp(value: float, low: float = 0.0, high: float = 10.0) -> float:
    return min(high, max(low, value))
