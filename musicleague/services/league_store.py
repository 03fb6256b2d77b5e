"""
In-memory holder for the current LeaguesSnapshot.

The snapshot is replaced wholesale on refresh and never mutated, so readers
always see one complete fan-out result.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import httpx

from musicleague.ingest.archive import ArchiveLimits
from musicleague.models import LeagueCategory
from musicleague.services.league_data import LeaguesSnapshot, load_all_leagues
from musicleague.services.league_loader import DEFAULT_TIMEOUT_MS

logger = logging.getLogger(__name__)


class LeagueStore:
    """Owns the configured categories and the latest snapshot."""

    def __init__(
        self,
        categories: Sequence[LeagueCategory],
        data_url: str,
        *,
        client: httpx.AsyncClient,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        limits: ArchiveLimits = ArchiveLimits(),
    ):
        self.categories = tuple(categories)
        self.data_url = data_url
        self._client = client
        self._timeout_ms = timeout_ms
        self._limits = limits
        self._snapshot: Optional[LeaguesSnapshot] = None

    @property
    def snapshot(self) -> Optional[LeaguesSnapshot]:
        return self._snapshot

    async def refresh(self) -> LeaguesSnapshot:
        """Re-run the whole fan-out and swap in the new snapshot."""
        snapshot = await load_all_leagues(
            self.categories,
            self.data_url,
            client=self._client,
            timeout_ms=self._timeout_ms,
            limits=self._limits,
        )
        self._snapshot = snapshot
        if snapshot.error:
            logger.warning("[store] %s", snapshot.error)
        return snapshot
