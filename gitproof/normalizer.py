"""Normalizer reconciling GraphQL and REST shaped GitHub payloads"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional, List, Tuple, Union

from .errors import InvalidProfileError
from .models import (
    ActivityEvent,
    CanonicalProfileRecord,
    PullRequestStats,
    RepoSummary,
    TopRepo,
)

logger = logging.getLogger(__name__)

MAX_TOP_LANGUAGES = 10


@dataclass(frozen=True)
class GraphQLPayload:
    """``data.user`` node of the GraphQL profile query plus REST events"""
    user: Dict[str, Any]
    events: List[Dict[str, Any]] = field(default_factory=list)
    source = "graphql"


@dataclass(frozen=True)
class RestPayload:
    """REST ``/users/{login}``, ``/repos`` and ``/events/public`` responses"""
    user: Dict[str, Any]
    repos: List[Dict[str, Any]] = field(default_factory=list)
    events: List[Dict[str, Any]] = field(default_factory=list)
    source = "rest"


RawPayload = Union[GraphQLPayload, RestPayload]


def normalize(payload: RawPayload) -> CanonicalProfileRecord:
    """Build the canonical record for either payload variant"""
    if isinstance(payload, GraphQLPayload):
        logger.debug("Normalizing GraphQL payload")
        return _normalize_graphql(payload)
    if isinstance(payload, RestPayload):
        logger.debug("Normalizing REST payload")
        return _normalize_rest(payload)
    raise TypeError(f"Unsupported payload type: {type(payload).__name__}")


def payload_from_dict(data: Dict[str, Any]) -> RawPayload:
    """Resolve a ``{"source": ..., ...}`` document into a payload variant"""
    if not isinstance(data, dict):
        raise InvalidProfileError("Payload must be a JSON object")
    source = data.get("source")
    user = data.get("user")
    if not isinstance(user, dict):
        raise InvalidProfileError("Payload has no user object")
    events = _as_list(data.get("events"))
    if source == "graphql":
        return GraphQLPayload(user=user, events=events)
    if source == "rest":
        return RestPayload(user=user, repos=_as_list(data.get("repos")), events=events)
    raise InvalidProfileError(f"Unknown payload source: {source!r} (expected 'graphql' or 'rest')")


def load_payload(path: Union[str, Path]) -> RawPayload:
    """Read a payload document from a JSON file"""
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except ValueError as e:
        # JSONDecodeError and UnicodeDecodeError
        raise InvalidProfileError(f"{path} is not valid UTF-8 JSON: {e}") from e
    return payload_from_dict(data)


def calculate_streak(weeks: List[Dict[str, Any]]) -> int:
    """Longest run of consecutive contribution days in a contribution calendar"""
    current = 0
    longest = 0
    for week in _dicts(weeks):
        for day in _dicts(week.get("contributionDays")):
            if _to_int(day.get("contributionCount")) > 0:
                current += 1
            else:
                longest = max(longest, current)
                current = 0
    return max(longest, current)


def _normalize_graphql(payload: GraphQLPayload) -> CanonicalProfileRecord:
    user = payload.user
    login = _require_login(user)
    created_at = _require_created_at(user, "createdAt")
    nodes = _dicts((user.get("repositories") or {}).get("nodes"))

    total_stars = 0
    languages: Dict[str, int] = {}
    top_repo = TopRepo()
    repositories = []
    for repo in nodes:
        stars = _to_int(repo.get("stargazersCount"))
        total_stars += stars
        if stars > top_repo.stars:
            top_repo = TopRepo(name=f"{login}/{repo.get('name', '')}", stars=stars)
        edges = _dicts((repo.get("languages") or {}).get("edges"))
        for edge in edges:
            language = (edge.get("node") or {}).get("name")
            if language:
                languages[language] = languages.get(language, 0) + _to_int(edge.get("size"))
        repositories.append(_graphql_repo_summary(login, repo, edges))

    calendar = (user.get("contributionsCollection") or {}).get("contributionCalendar") or {}
    total_contributions = calendar.get("totalContributions")

    return CanonicalProfileRecord(
        username=login,
        created_at=created_at,
        full_name=user.get("name") or login,
        avatar_url=user.get("avatarUrl") or "",
        followers=_total_count(user.get("followers")),
        following=_total_count(user.get("following")),
        public_repos=len(nodes),
        total_contributions=_to_int(total_contributions) if total_contributions is not None else None,
        longest_streak=calculate_streak(_as_list(calendar.get("weeks"))) if calendar else None,
        pr_stats=PullRequestStats(
            total=_total_count(user.get("pullRequests")),
            merged=_total_count(user.get("mergedPRs")),
            closed=_total_count(user.get("closedPRs")),
            open=_total_count(user.get("openPRs")),
        ),
        total_stars=total_stars,
        top_languages=_rank_languages(languages),
        top_repo=top_repo,
        name=user.get("name"),
        bio=user.get("bio"),
        location=user.get("location"),
        company=user.get("company"),
        email=user.get("email"),
        blog=user.get("websiteUrl"),
        twitter_username=user.get("twitterUsername"),
        hireable=bool(user.get("isHireable")),
        repositories=tuple(repositories),
        events=_map_events(payload.events),
        source=payload.source,
    )


def _normalize_rest(payload: RestPayload) -> CanonicalProfileRecord:
    user = payload.user
    login = _require_login(user)
    created_at = _require_created_at(user, "created_at")

    total_stars = 0
    languages: Dict[str, int] = {}
    top_repo = TopRepo()
    repositories = []
    for repo in _dicts(payload.repos):
        stars = _to_int(repo.get("stargazers_count"))
        total_stars += stars
        if stars > top_repo.stars:
            top_repo = TopRepo(name=repo.get("full_name") or f"{login}/{repo.get('name', '')}", stars=stars)
        language = repo.get("language")
        if language:
            languages[language] = languages.get(language, 0) + 1
        repositories.append(RepoSummary(
            name=repo.get("name") or "Unknown",
            full_name=repo.get("full_name") or f"{login}/{repo.get('name') or 'Unknown'}",
            description=repo.get("description") or "",
            language=language or "Unknown",
            stars=stars,
            forks=_to_int(repo.get("forks_count")),
            url=repo.get("html_url") or "",
        ))

    return CanonicalProfileRecord(
        username=login,
        created_at=created_at,
        full_name=user.get("name") or login,
        avatar_url=user.get("avatar_url") or "",
        followers=_to_int(user.get("followers")),
        following=_to_int(user.get("following")),
        public_repos=_to_int(user.get("public_repos")),
        total_contributions=None,
        longest_streak=None,
        pr_stats=None,
        total_stars=total_stars,
        top_languages=_rank_languages(languages),
        top_repo=top_repo,
        name=user.get("name"),
        bio=user.get("bio"),
        location=user.get("location"),
        company=user.get("company"),
        email=user.get("email"),
        blog=user.get("blog"),
        twitter_username=user.get("twitter_username"),
        hireable=bool(user.get("hireable")),
        repositories=tuple(repositories),
        events=_map_events(payload.events),
        source=payload.source,
    )


def _graphql_repo_summary(login: str, repo: Dict[str, Any], edges: List[Dict[str, Any]]) -> RepoSummary:
    name = repo.get("name") or "Unknown"
    primary = (edges[0].get("node") or {}).get("name") if edges else None
    return RepoSummary(
        name=name,
        full_name=f"{login}/{name}",
        description=repo.get("description") or "",
        language=primary or "Unknown",
        stars=_to_int(repo.get("stargazersCount")),
        forks=_to_int(repo.get("forkCount")),
        url=repo.get("url") or "",
        tech_stack_count=len(edges) or 1,
    )


def _rank_languages(weights: Dict[str, int]) -> Tuple[str, ...]:
    # sorted() is stable, so equal weights keep first-seen order
    ranked = sorted(weights.items(), key=lambda item: item[1], reverse=True)
    return tuple(name for name, _ in ranked[:MAX_TOP_LANGUAGES])


def _map_events(events: List[Dict[str, Any]]) -> Tuple[ActivityEvent, ...]:
    mapped = []
    for event in _dicts(events):
        mapped.append(ActivityEvent(
            id=str(event.get("id", "")),
            type=event.get("type") or "",
            repo_name=(event.get("repo") or {}).get("name") or "Unknown",
            created_at=event.get("created_at") or "",
        ))
    return tuple(mapped)


def _require_login(user: Dict[str, Any]) -> str:
    login = user.get("login")
    if not login or not isinstance(login, str):
        raise InvalidProfileError("Profile has no login")
    return login


def _require_created_at(user: Dict[str, Any], key: str) -> datetime:
    created_at = parse_timestamp(user.get(key))
    if created_at is None:
        raise InvalidProfileError(f"Profile {user.get('login')} has no valid account creation date")
    return created_at


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, assuming UTC when no offset is given"""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _total_count(connection: Any) -> int:
    if isinstance(connection, dict):
        return _to_int(connection.get("totalCount"))
    return _to_int(connection)


def _to_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _dicts(value: Any) -> List[Dict[str, Any]]:
    # GitHub list items may be null
    return [item for item in _as_list(value) if isinstance(item, dict)]
