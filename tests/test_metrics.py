from dataclasses import replace
from datetime import datetime, timezone

import pytest

from gitproof import metrics
from gitproof.models import CanonicalProfileRecord, PullRequestStats, TopRepo

from conftest import CREATED_AT, NOW

FIVE_YEARS = 5.0


def test_log_scale_is_zero_for_non_positive_values():
    assert metrics.log_scale(0, 100) == 0
    assert metrics.log_scale(-3, 100) == 0
    assert metrics.log_scale(0, 1) == 0


def test_log_scale_reaches_cap_at_expected_maximum():
    assert metrics.log_scale(1000, 1000) == pytest.approx(10.0)
    assert metrics.log_scale(10 ** 9, 1000) == 10.0


def test_log_scale_is_monotonic():
    values = [metrics.log_scale(v, 500) for v in range(0, 2000, 7)]
    assert values == sorted(values)


def test_linear_scale_bounds():
    assert metrics.linear_scale(0, 8) == 0
    assert metrics.linear_scale(8, 8) == 10
    assert metrics.linear_scale(100, 100) == 10
    assert metrics.linear_scale(4, 8) == 5
    assert metrics.linear_scale(80, 8) == 10
    assert metrics.linear_scale(-2, 8) == 0


def test_round_half_up_rounds_ties_away_from_zero():
    assert metrics.round_half_up(2.25, 1) == 2.3
    assert metrics.round_half_up(0.125, 2) == 0.13
    assert metrics.round_half_up(6.7392, 1) == 6.7


def test_years_between_uses_365_day_years():
    assert metrics.years_between(CREATED_AT, NOW) == FIVE_YEARS
    assert metrics.years_between(NOW, CREATED_AT) == 0.0


def test_hand_computed_fixture(fixture_record):
    assert metrics.endurance(fixture_record, FIVE_YEARS).value == 5.6
    assert metrics.productivity(fixture_record, FIVE_YEARS).value == 6.7
    assert metrics.reliability(fixture_record, FIVE_YEARS).value == 4.6
    assert metrics.impact(fixture_record, FIVE_YEARS).value == 7.0
    assert metrics.mastery(fixture_record, FIVE_YEARS).value == 5.1


def test_metric_labels_and_descriptions(fixture_record):
    result = metrics.impact(fixture_record, FIVE_YEARS)
    assert result.label == "Impact"
    assert result.description == "Stars earned (40%) + followers (35%) + viral reach (25%)"


def test_unknown_signals_use_neutral_defaults(empty_record):
    assert metrics.productivity(empty_record, 0.0).value == 2.5
    assert metrics.endurance(empty_record, 0.0).value == 3.0
    assert metrics.mastery(empty_record, 0.0).value == 3.0
    assert metrics.impact(empty_record, 0.0).value == 0.0


def test_zero_streak_is_scored_as_observed(fixture_record):
    known_zero = replace(fixture_record, longest_streak=0)
    unknown = replace(fixture_record, longest_streak=None)
    # 2.0 + 0 + 2.0 versus 2.0 + 0.4 * 5 + 2.0
    assert metrics.endurance(known_zero, FIVE_YEARS).value == 4.0
    assert metrics.endurance(unknown, FIVE_YEARS).value == 6.0


def test_acceptance_rate_without_finished_prs_is_zero(fixture_record):
    assert metrics.acceptance_rate(fixture_record) == 0.0
    open_only = replace(fixture_record, pr_stats=PullRequestStats(total=3, merged=0, closed=0, open=3))
    assert metrics.acceptance_rate(open_only) == 0.0


def test_acceptance_rate_raises_reliability(fixture_record):
    merged = replace(fixture_record, pr_stats=PullRequestStats(total=10, merged=8, closed=2, open=0))
    assert metrics.acceptance_rate(merged) == 0.8
    # 4.6375 + 0.3 * 8
    assert metrics.reliability(merged, FIVE_YEARS).value == 7.0


def test_profile_completeness_points_are_capped():
    record = CanonicalProfileRecord(
        username="full",
        created_at=CREATED_AT,
        name="Full",
        bio="bio",
        location="here",
        company="co",
        email="a@b.c",
        twitter_username="full",
        hireable=True,
    )
    assert metrics.profile_completeness(record) == 10.0
    assert metrics.profile_completeness(replace(record, hireable=False, company=None)) == 7.5


def test_follow_ratio_neutral_default_without_followers(empty_record):
    assert metrics.follow_ratio_score(empty_record) == 5.0
    assert metrics.follow_ratio_score(replace(empty_record, followers=3, following=0)) == 6.0
    assert metrics.follow_ratio_score(replace(empty_record, followers=300, following=1)) == 10.0


def test_framework_signal_requires_exact_name(fixture_record):
    with_framework = replace(fixture_record, top_languages=("TypeScript", "Python", "React"))
    lowercase = replace(fixture_record, top_languages=("TypeScript", "Python", "react"))
    # 1.5 + 2.1 + 0.3 * 8
    assert metrics.mastery(with_framework, FIVE_YEARS).value == 6.0
    assert metrics.mastery(lowercase, FIVE_YEARS).value == 5.1


def test_top_repo_without_stars_scores_zero(fixture_record):
    no_top = replace(fixture_record, top_repo=TopRepo())
    assert metrics.impact(no_top, FIVE_YEARS).value < metrics.impact(fixture_record, FIVE_YEARS).value


@pytest.mark.parametrize("record", [
    CanonicalProfileRecord(
        username="huge",
        created_at=datetime(1970, 1, 1, tzinfo=timezone.utc),
        followers=10 ** 9,
        following=0,
        public_repos=10 ** 6,
        total_contributions=10 ** 9,
        longest_streak=10 ** 6,
        pr_stats=PullRequestStats(total=10 ** 7, merged=10 ** 7, closed=0, open=0),
        total_stars=10 ** 12,
        top_languages=tuple(f"Lang{i}" for i in range(30)) + ("React",),
        top_repo=TopRepo(name="huge/x", stars=10 ** 10),
        name="n", bio="b", location="l", company="c", email="e", blog="b", hireable=True,
    ),
    CanonicalProfileRecord(
        username="negative",
        created_at=datetime(2100, 1, 1, tzinfo=timezone.utc),
        followers=-5,
        following=-1,
        public_repos=-3,
        total_contributions=-100,
        longest_streak=-7,
        pr_stats=PullRequestStats(total=-1, merged=0, closed=0, open=0),
        total_stars=-10,
    ),
])
def test_every_metric_is_bounded(record):
    years = metrics.years_between(record.created_at, NOW)
    for calculator in metrics.CALCULATORS.values():
        value = calculator(record, years).value
        assert 0.0 <= value <= 10.0
