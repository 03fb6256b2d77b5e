"""
Music League Engine - Command Line

Usage:
    # Standings for one local archive
    python -m musicleague.cli standings league.zip --title "Coffee Tunes"

    # Same, as JSON
    python -m musicleague.cli standings league.zip --json

    # Fetch every archive of a category table
    python -m musicleague.cli load --categories leagues.json --data-url http://localhost:8000/data

Exit codes: 0 on success, 1 if any archive failed to load.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import httpx
from pydantic import ValidationError

from .config import configure_logging, get_settings, load_categories
from .core.errors import LeagueLoadError
from .models import League, Standing
from .services.league_data import LeaguesSnapshot, load_all_leagues
from .services.league_loader import build_league

logger = logging.getLogger(__name__)


# =============================================================================
# Output
# =============================================================================


def _format_standings(standings: Sequence[Standing], indent: str = "  ") -> list[str]:
    lines = []
    for s in standings:
        song = f"  ({s.song})" if s.song else ""
        lines.append(f"{indent}{s.position:>3}. {s.name:<30} {s.points:>5}{song}")
    return lines


def format_league(league: League) -> str:
    lines = ["=" * 60, league.title, "=" * 60]
    for round_ in league.rounds:
        lines.append(f"\n{round_.name or round_.id}")
        lines.extend(_format_standings(round_.standings))
    lines.append("\nLeague standings")
    lines.extend(_format_standings(league.league_standings))
    return "\n".join(lines)


def format_snapshot(snapshot: LeaguesSnapshot) -> str:
    lines = []
    for category_id, leagues in snapshot.leagues_by_category.items():
        count = len(leagues) if leagues else 0
        lines.append(f"{category_id}: {count} leagues")
        for league in leagues or ():
            leader = league.league_standings[0].name if league.league_standings else "-"
            lines.append(f"  {league.title} ({len(league.rounds)} rounds, leader: {leader})")
    for failure in snapshot.failures:
        lines.append(f"FAILED {failure.category_id}/{failure.file_name}: [{failure.kind.value}] {failure.message}")
    if snapshot.error:
        lines.append(f"\nError: {snapshot.error}")
    return "\n".join(lines)


# =============================================================================
# Commands
# =============================================================================


def cmd_standings(args: argparse.Namespace) -> int:
    path = Path(args.archive)
    settings = get_settings()
    try:
        payload = path.read_bytes()
        league = build_league(
            payload,
            args.title or path.stem,
            limits=settings.archive_limits,
            file_name=path.name,
        )
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except LeagueLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(dataclasses.asdict(league), indent=2, ensure_ascii=False))
    else:
        print(format_league(league))
    return 0


async def _load(args: argparse.Namespace) -> LeaguesSnapshot:
    settings = get_settings()
    categories = load_categories(args.categories)
    async with httpx.AsyncClient(
        timeout=httpx.Timeout(30.0, connect=settings.HTTP_CONNECT_TIMEOUT_S)
    ) as client:
        return await load_all_leagues(
            categories,
            args.data_url or settings.LEAGUE_DATA_URL,
            client=client,
            timeout_ms=args.timeout_ms or settings.LOAD_TIMEOUT_MS,
            limits=settings.archive_limits,
        )


def cmd_load(args: argparse.Namespace) -> int:
    try:
        snapshot = asyncio.run(_load(args))
    except (FileNotFoundError, json.JSONDecodeError, ValidationError) as e:
        print(f"Error: invalid category table: {e}", file=sys.stderr)
        return 1

    print(format_snapshot(snapshot))
    return 1 if snapshot.failures or snapshot.error else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="musicleague",
        description="Music league archive standings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    standings = subparsers.add_parser("standings", help="Standings for a local archive")
    standings.add_argument("archive", help="Path to the league ZIP archive")
    standings.add_argument("--title", help="League title. Defaults to the file name.")
    standings.add_argument("--json", action="store_true", help="Print the League as JSON")
    standings.set_defaults(func=cmd_standings)

    load = subparsers.add_parser("load", help="Fetch and aggregate every configured archive")
    load.add_argument("--categories", "-c", required=True, help="Path to the JSON category table")
    load.add_argument("--data-url", help="Base URL archives are served under")
    load.add_argument("--timeout-ms", type=int, help="Per-archive deadline in ms")
    load.set_defaults(func=cmd_load)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entrypoint."""
    args = build_parser().parse_args(argv)

    settings = get_settings()
    if args.verbose:
        settings = settings.model_copy(update={"LOG_LEVEL": "DEBUG"})
    configure_logging(settings)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
