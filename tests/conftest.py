import logging
from datetime import datetime, timedelta, timezone

import pytest

from gitproof.errors import EnrichmentUnavailable
from gitproof.models import (
    CanonicalProfileRecord,
    MetricResult,
    ProfileAnalysis,
    RepoSummary,
    ScoringResult,
    TopRepo,
)
from gitproof.scoring_system import score_to_grade, score_to_percentile

CREATED_AT = datetime(2020, 1, 1, tzinfo=timezone.utc)
# Exactly five 365-day years after CREATED_AT
NOW = CREATED_AT + timedelta(days=5 * 365)


class FakeSummarizer:
    """Returns a canned response and records the prompts it receives"""

    provider = "fake"

    def __init__(self, response):
        self.response = response
        self.prompts = []

    def summarize(self, context, system_prompt=None):
        self.prompts.append(context)
        return self.response


class FailingSummarizer:
    provider = "fake"

    def summarize(self, context, system_prompt=None):
        raise EnrichmentUnavailable("timed out")


@pytest.fixture(autouse=True)
def reset_gitproof_logger():
    yield
    logger = logging.getLogger("gitproof")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def fixture_record():
    """Five-year-old account with no PR data; every metric computed by hand"""
    return CanonicalProfileRecord(
        username="octocat",
        created_at=CREATED_AT,
        full_name="Octo Cat",
        avatar_url="https://avatars.example/octocat.png",
        followers=500,
        following=50,
        public_repos=20,
        total_contributions=3000,
        longest_streak=40,
        pr_stats=None,
        total_stars=150,
        top_languages=("TypeScript", "Python", "Go"),
        top_repo=TopRepo(name="octocat/app", stars=80),
        name="Octo Cat",
        bio="Builds things",
        location="Berlin",
        repositories=(
            RepoSummary(
                name="app",
                full_name="octocat/app",
                description="",
                language="TypeScript",
                stars=80,
                forks=3,
                url="https://github.com/octocat/app",
            ),
        ),
        source="graphql",
    )


@pytest.fixture
def empty_record():
    """Brand-new account with nothing but a login"""
    return CanonicalProfileRecord(username="newbie", created_at=NOW)


@pytest.fixture
def graphql_user():
    return {
        "login": "octocat",
        "name": "Octo Cat",
        "avatarUrl": "https://avatars.example/octocat.png",
        "bio": "Builds things",
        "company": "GitHub",
        "location": "San Francisco",
        "email": "",
        "createdAt": "2020-01-01T00:00:00Z",
        "followers": {"totalCount": 120},
        "following": {"totalCount": 10},
        "contributionsCollection": {
            "contributionCalendar": {
                "totalContributions": 640,
                "weeks": [
                    {"contributionDays": [
                        {"contributionCount": 1, "date": "2024-01-01"},
                        {"contributionCount": 2, "date": "2024-01-02"},
                        {"contributionCount": 0, "date": "2024-01-03"},
                    ]},
                    {"contributionDays": [
                        {"contributionCount": 4, "date": "2024-01-04"},
                        {"contributionCount": 1, "date": "2024-01-05"},
                        {"contributionCount": 3, "date": "2024-01-06"},
                    ]},
                ],
            }
        },
        "pullRequests": {"totalCount": 42},
        "mergedPRs": {"totalCount": 30},
        "closedPRs": {"totalCount": 10},
        "openPRs": {"totalCount": 2},
        "repositories": {
            "nodes": [
                {
                    "name": "webapp",
                    "description": "A web app",
                    "stargazersCount": 90,
                    "forkCount": 12,
                    "url": "https://github.com/octocat/webapp",
                    "languages": {"edges": [
                        {"size": 5000, "node": {"name": "TypeScript"}},
                        {"size": 800, "node": {"name": "CSS"}},
                    ]},
                },
                {
                    "name": "tools",
                    "description": None,
                    "stargazersCount": 15,
                    "forkCount": 1,
                    "url": "https://github.com/octocat/tools",
                    "languages": {"edges": [
                        {"size": 3000, "node": {"name": "Python"}},
                        {"size": 700, "node": {"name": "CSS"}},
                    ]},
                },
            ]
        },
    }


@pytest.fixture
def rest_user():
    return {
        "login": "hubber",
        "name": None,
        "avatar_url": "https://avatars.example/hubber.png",
        "bio": "Open source fan",
        "company": None,
        "location": "Lisbon",
        "email": None,
        "blog": "https://hubber.dev",
        "twitter_username": None,
        "hireable": True,
        "created_at": "2018-06-15T12:00:00Z",
        "followers": 40,
        "following": 80,
        "public_repos": 3,
    }


@pytest.fixture
def rest_repos():
    return [
        {"name": "a", "full_name": "hubber/a", "stargazers_count": 5, "forks_count": 0,
         "language": "Go", "html_url": "https://github.com/hubber/a"},
        {"name": "b", "full_name": "hubber/b", "stargazers_count": 25, "forks_count": 2,
         "language": "Rust", "html_url": "https://github.com/hubber/b"},
        {"name": "c", "full_name": "hubber/c", "stargazers_count": 25, "forks_count": 1,
         "language": "Go", "html_url": "https://github.com/hubber/c"},
    ]


def make_analysis(username, score, followers=10, stars=5, languages=("Python",), impact=5.0):
    """Scored profile with a chosen aggregate, bypassing the calculators"""
    values = {"productivity": 5.0, "reliability": 5.0, "impact": impact, "mastery": 5.0, "endurance": 5.0}
    result = ScoringResult(
        score=score,
        grade=score_to_grade(score),
        percentile=score_to_percentile(score),
        metrics={k: MetricResult(label=k.capitalize(), value=v, description="") for k, v in values.items()},
    )
    record = CanonicalProfileRecord(
        username=username,
        created_at=CREATED_AT,
        full_name=username.title(),
        followers=followers,
        total_stars=stars,
        top_languages=languages,
    )
    return ProfileAnalysis(
        record=record,
        result=result,
        summary="",
        years_on_github=5.0,
        acceptance_rate=0.0,
        scanned_at=NOW.isoformat(),
    )
