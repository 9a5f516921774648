"""Data model shared by the scoring engine, comparator and persistence layers"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, Any, Optional, List, Tuple


@dataclass(frozen=True)
class PullRequestStats:
    """Pull request counts for an account"""
    total: int = 0
    merged: int = 0
    closed: int = 0
    open: int = 0


@dataclass(frozen=True)
class TopRepo:
    """Most starred repository owned by the account"""
    name: str = ""
    stars: int = 0

    @property
    def url(self) -> str:
        return f"https://github.com/{self.name}" if self.name else ""


@dataclass(frozen=True)
class RepoSummary:
    """Display summary of a fetched repository"""
    name: str
    full_name: str
    description: str
    language: str
    stars: int
    forks: int
    url: str
    tech_stack_count: int = 1


@dataclass(frozen=True)
class ActivityEvent:
    """Public event from the account's event stream"""
    id: str
    type: str
    repo_name: str
    created_at: str


@dataclass(frozen=True)
class CanonicalProfileRecord:
    """Normalized account telemetry consumed by the metric calculators.

    Optional fields are ``None`` when the upstream source cannot supply them
    (the REST fallback has no contribution calendar and no PR statistics).
    """
    username: str
    created_at: datetime
    full_name: str = ""
    avatar_url: str = ""
    followers: int = 0
    following: int = 0
    public_repos: int = 0
    total_contributions: Optional[int] = None
    longest_streak: Optional[int] = None
    pr_stats: Optional[PullRequestStats] = None
    total_stars: int = 0
    top_languages: Tuple[str, ...] = ()
    top_repo: TopRepo = field(default_factory=TopRepo)
    name: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None
    blog: Optional[str] = None
    twitter_username: Optional[str] = None
    hireable: bool = False
    repositories: Tuple[RepoSummary, ...] = ()
    events: Tuple[ActivityEvent, ...] = ()
    source: str = "rest"

    @property
    def display_name(self) -> str:
        return self.full_name or self.username


@dataclass(frozen=True)
class MetricResult:
    """One bounded sub-score with its formula description"""
    label: str
    value: float
    description: str


@dataclass(frozen=True)
class ScoringResult:
    """Deterministic result of scoring a CanonicalProfileRecord"""
    score: float
    grade: str
    percentile: int
    metrics: Dict[str, MetricResult]

    def strongest_metric(self) -> str:
        """Key of the highest metric; earlier metrics win ties"""
        best_key = None
        best_value = None
        for key, metric in self.metrics.items():
            if best_value is None or metric.value > best_value:
                best_key, best_value = key, metric.value
        return best_key or ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rating": {
                "score": self.score,
                "grade": self.grade,
                "percentile": self.percentile,
            },
            "metrics": {key: asdict(metric) for key, metric in self.metrics.items()},
        }


@dataclass(frozen=True)
class ProfileAnalysis:
    """A scored profile: the input record, its score and a summary"""
    record: CanonicalProfileRecord
    result: ScoringResult
    summary: str
    years_on_github: float
    acceptance_rate: float
    scanned_at: str

    @property
    def username(self) -> str:
        return self.record.username

    @property
    def full_name(self) -> str:
        return self.record.display_name

    def to_dict(self) -> Dict[str, Any]:
        record = self.record
        data = {
            "username": record.username,
            "fullName": record.display_name,
            "avatarUrl": record.avatar_url,
            "bio": record.bio or "No bio available",
            "location": record.location or "Remote",
            "company": record.company,
            "email": record.email,
            "yearsOnGithub": self.years_on_github,
            "followers": record.followers,
            "following": record.following,
            "repositories": record.public_repos,
            "totalStars": record.total_stars,
            "totalContributions": record.total_contributions,
            "longestStreak": record.longest_streak,
            "acceptanceRate": self.acceptance_rate,
            "topRepo": {
                "name": record.top_repo.name,
                "stars": record.top_repo.stars,
                "url": record.top_repo.url,
            },
            "techStack": list(record.top_languages),
            "repos": [asdict(repo) for repo in record.repositories],
            "recentActivity": [asdict(event) for event in record.events],
            "summary": self.summary,
            "lastScanned": self.scanned_at,
        }
        data.update(self.result.to_dict())
        return data


@dataclass(frozen=True)
class ComparisonResult:
    """Head-to-head comparison of two scored profiles"""
    username_a: str
    username_b: str
    winner_username: str
    is_tie: bool
    headline: str
    reasoning: str
    insights: List[str]
    enriched: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
