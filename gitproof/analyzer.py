"""Profile analysis pipeline: normalize, score, summarize, persist"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

import requests

from . import metrics
from .ai_summary_generator import NullSummarizer, parse_json_object
from .errors import EnrichmentUnavailable, PersistenceError
from .leaderboard import LeaderboardStore
from .models import CanonicalProfileRecord, ProfileAnalysis, ScoringResult
from .normalizer import RawPayload, normalize
from .scoring_system import ScoringSystem
from .uploader import ProfilePublisher

logger = logging.getLogger(__name__)

SUMMARY_SYSTEM_PROMPT = "You write short, factual, professional summaries of software developers."


def format_score(score: float) -> str:
    """Render a score without trailing zeros (6.0 -> '6', 6.25 -> '6.25')"""
    return format(score, "g")


def default_summary(record: CanonicalProfileRecord, result: ScoringResult) -> str:
    return (
        f"{record.display_name} has a GitProof score of {format_score(result.score)} "
        f"({result.grade}). Strongest in {result.strongest_metric()}."
    )


def build_summary_prompt(record: CanonicalProfileRecord, result: ScoringResult, acceptance: float) -> str:
    m = result.metrics
    return f"""Write a 2-sentence professional summary for a developer profile.

Developer: {record.display_name}
Calculated Score: {format_score(result.score)}/10 (Grade: {result.grade})
Key Strength: {result.strongest_metric()}

Bio: {record.bio}
Company: {record.company}
Top Languages: {', '.join(record.top_languages)}

Context:
- Endurance: {m['endurance'].value}
- Productivity: {m['productivity'].value}
- Reliability: {m['reliability'].value} (PR Acceptance: {acceptance * 100:.0f}%)
- Impact: {m['impact'].value}
- Mastery: {m['mastery'].value}

Output JSON: {{ "summary": "string" }}
"""


class ProfileAnalyzer:
    """Runs the full analysis for one profile

    Scoring is deterministic. The summary enrichment, leaderboard save and
    publication are best-effort: their failures are logged and the analysis
    is still returned.
    """

    def __init__(self, summarizer=None, store: Optional[LeaderboardStore] = None,
                 publisher: Optional[ProfilePublisher] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.scoring_system = ScoringSystem(clock=self.clock)
        self.summarizer = summarizer or NullSummarizer()
        self.store = store
        self.publisher = publisher

    def analyze(self, payload: RawPayload, save: bool = True) -> ProfileAnalysis:
        """Analyze a raw payload; raises InvalidProfileError for unusable input"""
        return self.analyze_record(normalize(payload), save=save)

    def analyze_record(self, record: CanonicalProfileRecord, save: bool = True) -> ProfileAnalysis:
        now = self.clock()
        result = self.scoring_system.calculate_scores(record, now)
        acceptance = metrics.acceptance_rate(record)
        logger.debug("%s scored %s (%s)", record.username, result.score, result.grade)

        analysis = ProfileAnalysis(
            record=record,
            result=result,
            summary=self._summarize(record, result, acceptance),
            years_on_github=metrics.round_half_up(metrics.years_between(record.created_at, now), 1),
            acceptance_rate=acceptance,
            scanned_at=now.isoformat(),
        )

        if save:
            self._persist(analysis)
        return analysis

    def _summarize(self, record: CanonicalProfileRecord, result: ScoringResult, acceptance: float) -> str:
        summary = default_summary(record, result)
        try:
            response = self.summarizer.summarize(
                build_summary_prompt(record, result, acceptance),
                system_prompt=SUMMARY_SYSTEM_PROMPT,
            )
            enriched = parse_json_object(response).get("summary")
        except EnrichmentUnavailable as e:
            log = logger.warning if getattr(self.summarizer, "provider", None) else logger.debug
            log("AI summary generation failed, using default summary: %s", e)
            return summary

        if isinstance(enriched, str) and enriched.strip():
            return enriched.strip()
        logger.warning("AI summary response had no summary text, using default summary")
        return summary

    def _persist(self, analysis: ProfileAnalysis) -> None:
        if self.store:
            try:
                self.store.save(analysis)
            except PersistenceError as e:
                logger.warning("Leaderboard save failed for %s: %s", analysis.username, e)

        if self.publisher:
            try:
                self.publisher.publish(analysis)
            except requests.RequestException as e:
                logger.warning("Publishing %s failed: %s", analysis.username, e)
