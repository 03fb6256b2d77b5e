"""
Music League Engine - Services

Joiner, standings aggregator, single-archive loader and the category fan-out.
"""

from .joiner import LeagueIndex, build_index
from .league_data import (
    LeaguesSnapshot,
    category_summaries,
    find_league_by_slug,
    get_all_leagues,
    get_top_standings,
    load_all_leagues,
)
from .league_loader import build_league, fetch_archive, load_league
from .league_store import LeagueStore
from .standings import (
    compute_combined_standings,
    compute_league_standings,
    compute_round_standings,
    rank,
)

__all__ = [
    # Joiner
    "LeagueIndex",
    "build_index",
    # Standings
    "compute_round_standings",
    "compute_league_standings",
    "compute_combined_standings",
    "rank",
    # Loader
    "build_league",
    "fetch_archive",
    "load_league",
    # Fan-out
    "LeaguesSnapshot",
    "load_all_leagues",
    "get_top_standings",
    "category_summaries",
    "get_all_leagues",
    "find_league_by_slug",
    "LeagueStore",
]
