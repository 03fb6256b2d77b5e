"""
Music League Engine - League Data (category fan-out)

Loads every configured archive in parallel and collects the results into an
immutable snapshot. One task per archive; a failed archive becomes a
LoadFailure and never affects its siblings. A refresh re-runs the whole
fan-out from scratch: there is no cache and no retry.

Usage:
    categories = load_categories("leagues.json")
    async with httpx.AsyncClient() as client:
        snapshot = await load_all_leagues(categories, settings.LEAGUE_DATA_URL, client=client)
    top = get_top_standings(snapshot)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from musicleague.core.errors import LeagueLoadError, LoadFailure
from musicleague.ingest.archive import ArchiveLimits
from musicleague.models import League, LeagueCategory, Standing
from musicleague.services.league_loader import DEFAULT_TIMEOUT_MS, load_league
from musicleague.services.standings import compute_combined_standings
from musicleague.utils.slugs import title_to_slug

logger = logging.getLogger(__name__)

NO_DATA_ERROR = "No league data found. Please add ZIP files to the configured data directory."
TOP_STANDINGS_LIMIT = 5


@dataclass(frozen=True, slots=True)
class LeaguesSnapshot:
    """Result of one full fan-out. Replaced wholesale, never mutated."""

    leagues_by_category: Dict[str, Optional[Tuple[League, ...]]]
    failures: Tuple[LoadFailure, ...] = ()
    error: Optional[str] = None
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_data(self) -> bool:
        return any(self.leagues_by_category.values())

    @property
    def degraded(self) -> bool:
        return bool(self.failures)


@dataclass(frozen=True, slots=True)
class CategorySummary:
    id: str
    name: str
    description: Optional[str]
    theme_color: Optional[str]
    league_count: int
    total_participants: int
    league_titles: Tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "theme_color": self.theme_color,
            "league_count": self.league_count,
            "total_participants": self.total_participants,
            "leagues": [
                {"title": title, "slug": title_to_slug(title)} for title in self.league_titles
            ],
        }


# =============================================================================
# Fan-out
# =============================================================================


async def load_all_leagues(
    categories: Sequence[LeagueCategory],
    data_url: str,
    *,
    client: httpx.AsyncClient,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    limits: ArchiveLimits = ArchiveLimits(),
) -> LeaguesSnapshot:
    """
    Load every archive of every category concurrently.

    Leagues keep their configured order within a category. A category with
    no successful archive maps to None.
    """
    jobs = [
        (category, league_file)
        for category in categories
        for league_file in category.leagues
    ]
    logger.info("[league_data] Loading %d archives", len(jobs), extra={"count": len(jobs)})

    results = await asyncio.gather(
        *(
            load_league(
                league_file,
                category.data_path(data_url),
                client=client,
                timeout_ms=timeout_ms,
                limits=limits,
                category_id=category.id,
                category_name=category.name,
            )
            for category, league_file in jobs
        ),
        return_exceptions=True,
    )

    loaded: Dict[str, List[League]] = {category.id: [] for category in categories}
    failures: List[LoadFailure] = []
    for (category, league_file), result in zip(jobs, results):
        if isinstance(result, League):
            loaded[category.id].append(result)
            continue
        if isinstance(result, asyncio.CancelledError):
            raise result
        if not isinstance(result, LeagueLoadError):
            logger.error(
                "[league_data] Unexpected error loading %s",
                league_file.file_name,
                exc_info=result,
                extra={"archive": league_file.file_name, "category": category.id},
            )
        failures.append(
            LoadFailure.from_exception(
                result,
                category_id=category.id,
                title=league_file.title,
                file_name=league_file.file_name,
            )
        )

    leagues_by_category: Dict[str, Optional[Tuple[League, ...]]] = {
        category_id: tuple(leagues) if leagues else None
        for category_id, leagues in loaded.items()
    }
    has_data = any(leagues_by_category.values())
    snapshot = LeaguesSnapshot(
        leagues_by_category=leagues_by_category,
        failures=tuple(failures),
        error=None if has_data else NO_DATA_ERROR,
    )

    logger.info(
        "[league_data] Loaded %d of %d archives (%d failed)",
        len(jobs) - len(failures),
        len(jobs),
        len(failures),
    )
    return snapshot


# =============================================================================
# Queries
# =============================================================================


def get_all_leagues(snapshot: LeaguesSnapshot) -> List[League]:
    """Every loaded league, flattened in category order."""
    leagues: List[League] = []
    for category_leagues in snapshot.leagues_by_category.values():
        if category_leagues:
            leagues.extend(category_leagues)
    return leagues


def find_league_by_slug(
    snapshot: LeaguesSnapshot, category_id: str, slug: str
) -> Optional[League]:
    for league in snapshot.leagues_by_category.get(category_id) or ():
        if title_to_slug(league.title) == slug:
            return league
    return None


def get_top_standings(
    snapshot: Optional[LeaguesSnapshot], limit: int = TOP_STANDINGS_LIMIT
) -> Tuple[Standing, ...]:
    """Combined standings across every league, top `limit` only."""
    if snapshot is None:
        return ()
    return compute_combined_standings(get_all_leagues(snapshot))[:limit]


def category_summaries(
    snapshot: LeaguesSnapshot, categories: Sequence[LeagueCategory]
) -> List[CategorySummary]:
    """Per-category league count and participant total. Empty categories are skipped."""
    summaries: List[CategorySummary] = []
    for category in categories:
        leagues = snapshot.leagues_by_category.get(category.id)
        if not leagues:
            continue
        summaries.append(
            CategorySummary(
                id=category.id,
                name=category.name,
                description=category.description,
                theme_color=category.theme_color,
                league_count=len(leagues),
                total_participants=sum(len(league.competitors) for league in leagues),
                league_titles=tuple(league.title for league in leagues),
            )
        )
    return summaries
