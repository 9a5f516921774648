import json
from dataclasses import replace

import pytest

from gitproof.models import MetricResult
from gitproof.scoring_system import (
    METRIC_WEIGHTS,
    ScoringSystem,
    aggregate,
    score_to_grade,
    score_to_percentile,
)

from conftest import NOW


def _metrics(**values):
    return {key: MetricResult(label=key.capitalize(), value=value, description="") for key, value in values.items()}


def test_weights_sum_to_one():
    assert sum(METRIC_WEIGHTS.values()) == pytest.approx(1.0, abs=1e-12)
    assert set(METRIC_WEIGHTS) == {"productivity", "reliability", "impact", "mastery", "endurance"}


def test_aggregate_is_weighted_sum_rounded_to_two_decimals():
    results = _metrics(productivity=8.1, reliability=6.3, impact=7.7, mastery=5.9, endurance=4.4)
    expected = 8.1 * 0.25 + 6.3 * 0.15 + 7.7 * 0.25 + 5.9 * 0.15 + 4.4 * 0.20
    assert aggregate(results) == round(expected, 2) == 6.66


def test_aggregate_bounds():
    assert aggregate(_metrics(productivity=10, reliability=10, impact=10, mastery=10, endurance=10)) == 10.0
    assert aggregate(_metrics(productivity=0, reliability=0, impact=0, mastery=0, endurance=0)) == 0.0


def test_aggregate_requires_all_metrics():
    with pytest.raises(ValueError):
        aggregate(_metrics(productivity=5.0))


@pytest.mark.parametrize("score, grade, percentile", [
    (10.0, "S", 99),
    (9.0, "S", 99),
    (8.999999, "A", 95),
    (8.0, "A", 95),
    (7.5, "A", 85),
    (7.49, "B", 85),
    (7.0, "B", 85),
    (6.0, "B", 70),
    (5.99, "C", 50),
    (5.0, "C", 50),
    (4.5, "C", 30),
    (4.0, "D", 30),
    (3.0, "D", 15),
    (2.99, "F", 5),
    (0.0, "F", 5),
])
def test_grade_and_percentile_ladders(score, grade, percentile):
    assert score_to_grade(score) == grade
    assert score_to_percentile(score) == percentile


def test_grader_is_total_over_score_range():
    for hundredths in range(0, 1001):
        score = hundredths / 100
        assert score_to_grade(score) in {"S", "A", "B", "C", "D", "F"}
        assert 0 <= score_to_percentile(score) <= 99


def test_fixture_scoring_result(fixture_record, clock):
    result = ScoringSystem(clock=clock).calculate_scores(fixture_record)

    assert {key: m.value for key, m in result.metrics.items()} == {
        "productivity": 6.7,
        "reliability": 4.6,
        "impact": 7.0,
        "mastery": 5.1,
        "endurance": 5.6,
    }
    assert result.score == 6.0
    assert result.grade == "B"
    assert result.percentile == 70
    assert result.strongest_metric() == "impact"


def test_scoring_is_idempotent(fixture_record, clock):
    system = ScoringSystem(clock=clock)
    first = system.calculate_scores(fixture_record)
    second = system.calculate_scores(fixture_record)
    assert first == second
    assert json.dumps(first.to_dict(), sort_keys=True) == json.dumps(second.to_dict(), sort_keys=True)


def test_explicit_now_overrides_clock(fixture_record, clock):
    system = ScoringSystem(clock=clock)
    later = system.calculate_scores(fixture_record, now=NOW.replace(year=NOW.year + 5))
    assert later.metrics["endurance"].value > system.calculate_scores(fixture_record).metrics["endurance"].value


def test_score_stays_in_range_for_new_account(empty_record, clock):
    result = ScoringSystem(clock=clock).calculate_scores(replace(empty_record, followers=0))
    assert 0.0 <= result.score <= 10.0
    assert result.grade == "F"
    assert result.percentile == 5
