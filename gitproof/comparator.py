"""Head-to-head comparison of two scored profiles"""

import logging
from typing import List, Optional

from .ai_summary_generator import NullSummarizer, parse_json_object
from .analyzer import format_score
from .errors import EnrichmentUnavailable
from .models import ComparisonResult, ProfileAnalysis

logger = logging.getLogger(__name__)

COMPARISON_SYSTEM_PROMPT = "You compare GitHub developers using only the data provided."


def decide_winner(a: ProfileAnalysis, b: ProfileAnalysis) -> ProfileAnalysis:
    """Higher aggregate score wins; an exact tie goes to the first profile"""
    return b if b.result.score > a.result.score else a


def build_insights(a: ProfileAnalysis, b: ProfileAnalysis) -> List[str]:
    """Fixed list of data-derived comparison statements"""
    winner = decide_winner(a, b)
    loser = b if winner is a else a
    insights = []

    if a.result.score == b.result.score:
        insights.append(
            f"Both developers share an overall score of {format_score(a.result.score)} "
            f"(grades {a.result.grade} and {b.result.grade})."
        )
    else:
        insights.append(
            f"{winner.full_name} leads overall with {format_score(winner.result.score)} "
            f"({winner.result.grade}) against {format_score(loser.result.score)} ({loser.result.grade})."
        )

    gap_key = max(
        a.result.metrics,
        key=lambda key: abs(a.result.metrics[key].value - b.result.metrics[key].value),
    )
    value_a = a.result.metrics[gap_key].value
    value_b = b.result.metrics[gap_key].value
    label = a.result.metrics[gap_key].label
    if value_a == value_b:
        insights.append(f"Every metric is level at the same values, including {label} ({value_a}).")
    else:
        ahead, behind = (a, b) if value_a > value_b else (b, a)
        insights.append(
            f"The widest gap is {label}: {ahead.full_name} {ahead.result.metrics[gap_key].value} "
            f"vs {behind.full_name} {behind.result.metrics[gap_key].value}."
        )

    insights.append(_count_insight(a, b, a.record.followers, b.record.followers,
                                   "has a larger following", "followers"))
    insights.append(_count_insight(a, b, a.record.total_stars, b.record.total_stars,
                                   "has earned more stars", "stars"))

    shared = [lang for lang in a.record.top_languages if lang in b.record.top_languages]
    if shared:
        insights.append(f"Shared languages: {', '.join(shared)}.")
    else:
        insights.append("The two developers have no top languages in common.")
    return insights


def _count_insight(a: ProfileAnalysis, b: ProfileAnalysis, count_a: int, count_b: int,
                   phrase: str, noun: str) -> str:
    if count_a == count_b:
        return f"Both developers have {count_a} {noun}."
    leader = a if count_a > count_b else b
    return f"{leader.full_name} {phrase} ({max(count_a, count_b)} vs {min(count_a, count_b)} {noun})."


def build_comparison_prompt(a: ProfileAnalysis, b: ProfileAnalysis, winner: ProfileAnalysis) -> str:
    return f"""Compare these two GitHub developers head-to-head.

{_describe(1, a)}

{_describe(2, b)}

The winner has already been decided from the scores: {winner.full_name} (@{winner.username}).

Task:
1. Write a headline stating that {winner.full_name} is the stronger developer.
2. Write a 2-3 sentence paragraph explaining the decision.
3. Provide 4 bullet point "Key Insights" comparing specific data points above.

Output JSON: {{ "headline": "string", "reasoning": "string", "insights": ["string"] }}
"""


def _describe(index: int, p: ProfileAnalysis) -> str:
    m = p.result.metrics
    r = p.record
    return (
        f"Developer {index}: {p.full_name} (@{p.username})\n"
        f"- Score: {format_score(p.result.score)} ({p.result.grade})\n"
        f"- Metrics: endurance {m['endurance'].value}, productivity {m['productivity'].value}, "
        f"impact {m['impact'].value}, reliability {m['reliability'].value}, mastery {m['mastery'].value}\n"
        f"- Repos: {r.public_repos}, Followers: {r.followers}, Total Stars: {r.total_stars}\n"
        f"- Total Contributions (Year): {_or_na(r.total_contributions)}, Streak: {_or_na(r.longest_streak)}\n"
        f"- Top Languages: {', '.join(r.top_languages)}"
    )


def _or_na(value: Optional[int]) -> str:
    return "N/A" if value is None else str(value)


class ProfileComparator:
    """Compares two scored profiles; enrichment only rewrites the text"""

    def __init__(self, summarizer=None):
        self.summarizer = summarizer or NullSummarizer()

    def compare(self, a: ProfileAnalysis, b: ProfileAnalysis) -> ComparisonResult:
        result = self.deterministic(a, b)
        try:
            return self._enrich(a, b, result)
        except EnrichmentUnavailable as e:
            log = logger.warning if getattr(self.summarizer, "provider", None) else logger.debug
            log("AI comparison failed, using deterministic comparison: %s", e)
            return result

    def deterministic(self, a: ProfileAnalysis, b: ProfileAnalysis) -> ComparisonResult:
        winner = decide_winner(a, b)
        loser = b if winner is a else a
        is_tie = a.result.score == b.result.score
        delta = abs(a.result.score - b.result.score)

        if is_tie:
            headline = f"{a.full_name} and {b.full_name} are evenly matched."
            reasoning = (
                f"Both developers have an overall score of {format_score(a.result.score)}, "
                f"so neither profile is stronger on the available metrics. "
                f"{a.full_name} is listed first as the tie-break."
            )
        else:
            headline = f"{winner.full_name} is the stronger developer based on available metrics."
            reasoning = (
                f"{winner.full_name} has a higher overall score ({format_score(winner.result.score)}, "
                f"grade {winner.result.grade}) compared to {loser.full_name} "
                f"({format_score(loser.result.score)}, grade {loser.result.grade}), "
                f"a difference of {delta:.2f} points."
            )

        return ComparisonResult(
            username_a=a.username,
            username_b=b.username,
            winner_username=winner.username,
            is_tie=is_tie,
            headline=headline,
            reasoning=reasoning,
            insights=build_insights(a, b),
        )

    def _enrich(self, a: ProfileAnalysis, b: ProfileAnalysis, result: ComparisonResult) -> ComparisonResult:
        winner = a if result.winner_username == a.username else b
        response = self.summarizer.summarize(
            build_comparison_prompt(a, b, winner),
            system_prompt=COMPARISON_SYSTEM_PROMPT,
        )
        data = parse_json_object(response)

        headline = data.get("headline")
        reasoning = data.get("reasoning")
        insights = data.get("insights")
        if not (isinstance(headline, str) and headline.strip()):
            raise EnrichmentUnavailable("AI comparison has no headline")
        if not (isinstance(reasoning, str) and reasoning.strip()):
            raise EnrichmentUnavailable("AI comparison has no reasoning")
        if not isinstance(insights, list) or not all(isinstance(i, str) for i in insights):
            raise EnrichmentUnavailable("AI comparison insights are not a list of strings")

        suggested = data.get("winnerUsername")
        if suggested and suggested != result.winner_username:
            logger.debug("Ignoring AI winner %s; score winner is %s", suggested, result.winner_username)

        return ComparisonResult(
            username_a=result.username_a,
            username_b=result.username_b,
            winner_username=result.winner_username,
            is_tie=result.is_tie,
            headline=headline.strip(),
            reasoning=reasoning.strip(),
            insights=insights or result.insights,
            enriched=True,
        )
