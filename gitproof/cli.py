"""CLI entry point for gitproof"""

import json
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import click

from .ai_summary_generator import build_summarizer
from .analyzer import ProfileAnalyzer, format_score
from .comparator import ProfileComparator
from .config import load_config
from .errors import InvalidProfileError, PersistenceError
from .leaderboard import LeaderboardStore
from .normalizer import load_payload, parse_timestamp
from .uploader import ProfilePublisher


def setup_logging(verbose: bool) -> None:
    """Send gitproof logs to stderr"""
    logger = logging.getLogger("gitproof")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _fixed_clock(now: Optional[str]):
    if not now:
        return None
    moment = parse_timestamp(now)
    if moment is None:
        raise click.BadParameter(f"not an ISO-8601 timestamp: {now}", param_hint="--now")
    return lambda: moment


def _build_analyzer(ctx: click.Context, save: bool, now: Optional[str]) -> ProfileAnalyzer:
    obj = ctx.obj
    config = obj["config"]
    summarizer = build_summarizer(config["ai"], obj["openai_token"], obj["gemini_token"])

    store = None
    if save and config["leaderboard"].get("enabled"):
        store = LeaderboardStore(config["leaderboard"]["path"])

    publisher = None
    publish = config["publish"]
    if save and publish.get("url"):
        publisher = ProfilePublisher(
            publish_url=publish["url"],
            publish_token=os.environ.get(publish.get("token_env") or ""),
            auth_type=publish.get("auth_type", "bearer"),
            custom_header=publish.get("custom_header"),
            timeout=float(publish.get("timeout_sec", 15)),
        )

    return ProfileAnalyzer(summarizer=summarizer, store=store, publisher=publisher,
                           clock=_fixed_clock(now))


@click.group()
@click.option('--config', '-c', 'config_path', type=click.Path(dir_okay=False), help='Path to gitproof.yml')
@click.option('--openai-token', envvar='OPENAI_API_KEY', help='OpenAI API token for AI summaries')
@click.option('--gemini-token', envvar='GEMINI_API_KEY', help='Google Gemini API token for AI summaries')
@click.option('--ai-provider', type=click.Choice(['openai', 'gemini', 'auto', 'none']), help='AI provider to use (overrides config)')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], openai_token: Optional[str],
         gemini_token: Optional[str], ai_provider: Optional[str], verbose: bool):
    """Score GitHub developer profiles"""
    setup_logging(verbose)
    config = load_config(config_path)
    if ai_provider:
        config["ai"]["provider"] = ai_provider
    ctx.obj = {
        "config": config,
        "openai_token": openai_token,
        "gemini_token": gemini_token,
    }


@main.command()
@click.argument('payload', type=click.Path(exists=True, dir_okay=False))
@click.option('--now', help='Score as of this ISO-8601 time instead of the current time')
@click.option('--no-save', is_flag=True, help='Do not record the profile on the leaderboard')
@click.option('--json', 'as_json', is_flag=True, help='Print the full analysis as JSON')
@click.pass_context
def analyze(ctx: click.Context, payload: str, now: Optional[str], no_save: bool, as_json: bool):
    """Analyze one GitHub payload file"""
    analyzer = _build_analyzer(ctx, save=not no_save, now=now)
    try:
        analysis = analyzer.analyze(load_payload(payload))
    except (InvalidProfileError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(analysis.to_dict(), indent=2))
        return

    result = analysis.result
    click.echo(f"{analysis.full_name} (@{analysis.username})")
    click.echo(f"  Score: {format_score(result.score)}/10  Grade: {result.grade}  "
               f"Percentile: top {100 - result.percentile}%")
    for metric in result.metrics.values():
        click.echo(f"  {metric.label:<13} {metric.value:>4}  {metric.description}")
    click.echo(f"\n{analysis.summary}")


@main.command()
@click.argument('payload_a', type=click.Path(exists=True, dir_okay=False))
@click.argument('payload_b', type=click.Path(exists=True, dir_okay=False))
@click.option('--now', help='Score as of this ISO-8601 time instead of the current time')
@click.option('--no-save', is_flag=True, help='Do not record the profiles on the leaderboard')
@click.option('--json', 'as_json', is_flag=True, help='Print the comparison as JSON')
@click.pass_context
def compare(ctx: click.Context, payload_a: str, payload_b: str, now: Optional[str],
            no_save: bool, as_json: bool):
    """Compare two GitHub payload files head-to-head"""
    analyzer = _build_analyzer(ctx, save=not no_save, now=now)
    try:
        payloads = [load_payload(payload_a), load_payload(payload_b)]
        with ThreadPoolExecutor(max_workers=2) as executor:
            first, second = executor.map(analyzer.analyze, payloads)
    except (InvalidProfileError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    comparator = ProfileComparator(analyzer.summarizer)
    comparison = comparator.compare(first, second)

    if as_json:
        data = comparison.to_dict()
        data["scores"] = {
            first.username: first.result.to_dict()["rating"],
            second.username: second.result.to_dict()["rating"],
        }
        click.echo(json.dumps(data, indent=2))
        return

    for analysis in (first, second):
        click.echo(f"@{analysis.username}: {format_score(analysis.result.score)} ({analysis.result.grade})")
    winner = "tie" if comparison.is_tie else f"@{comparison.winner_username}"
    click.echo(f"Winner: {winner}")
    click.echo(f"\n{comparison.headline}\n{comparison.reasoning}\n")
    for insight in comparison.insights:
        click.echo(f"  - {insight}")


@main.command()
@click.option('--limit', type=click.IntRange(min=1), help='Number of entries to show')
@click.option('--json', 'as_json', is_flag=True, help='Print entries as JSON')
@click.pass_context
def leaderboard(ctx: click.Context, limit: Optional[int], as_json: bool):
    """Show the top scored profiles"""
    config = ctx.obj["config"]["leaderboard"]
    store = LeaderboardStore(config["path"])
    try:
        entries = store.top(limit or int(config.get("limit", 50)))
    except PersistenceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(entries, indent=2))
        return
    if not entries:
        click.echo("Leaderboard is empty")
        return
    for entry in entries:
        click.echo(f"{entry['rank']:>3}. {entry['username']:<24} {format_score(entry['score']):>5} "
                   f"{entry['grade']}  searches: {entry['search_count']}")


if __name__ == '__main__':
    main()
