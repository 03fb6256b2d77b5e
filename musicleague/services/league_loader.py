"""
Music League Engine - League Loader

Fetches one configured archive and turns it into a League:

    GET {base_path}/{fileName}
      -> read_archive (size caps, entry validation)
      -> parse_archive_tables
      -> build_index
      -> compute_round_standings / compute_league_standings

Any failure is fatal for that archive only and surfaces as a LeagueLoadError
subclass; no partial League is ever returned.

Usage:
    async with httpx.AsyncClient() as client:
        league = await load_league(league_file, base_path, client=client)
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

import httpx

from musicleague.core.errors import FetchFailedError, LeagueLoadError, LoadTimeoutError
from musicleague.core.logging import LogContext
from musicleague.ingest.archive import ArchiveLimits, check_payload_size, read_archive
from musicleague.ingest.tables import parse_archive_tables
from musicleague.models import League, LeagueFile, Round
from musicleague.services.joiner import build_index
from musicleague.services.standings import compute_league_standings, compute_round_standings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 5000


# =============================================================================
# Pure core: bytes -> League
# =============================================================================


def build_league(
    payload: bytes,
    title: str,
    *,
    limits: ArchiveLimits = ArchiveLimits(),
    file_name: Optional[str] = None,
    category_id: Optional[str] = None,
    category_name: Optional[str] = None,
    urls: Optional[dict[str, Any]] = None,
) -> League:
    """
    Validate, parse, join and aggregate one archive payload.

    Deterministic: identical bytes always give an equal League.

    Raises:
        ArchiveValidationError: If the archive is rejected
    """
    files = read_archive(payload, limits, file_name)
    tables = parse_archive_tables(files)
    index = build_index(tables)

    rounds = tuple(
        Round.from_definition(
            definition,
            compute_round_standings(
                definition,
                index.submissions_for(definition.id),
                index.points_by_submission,
                index.competitor_name_by_id,
            ),
        )
        for definition in index.rounds
    )

    if tables.dropped_rows:
        logger.debug(
            "[loader] %d malformed rows dropped",
            tables.dropped_rows,
            extra={"dropped_rows": tables.dropped_rows},
        )

    return League(
        title=title,
        rounds=rounds,
        league_standings=compute_league_standings(rounds),
        votes=tuple(tables.votes),
        competitors=tuple(tables.competitors),
        submissions=tuple(tables.submissions),
        category_id=category_id,
        category_name=category_name,
        urls=dict(urls) if urls else None,
    )


# =============================================================================
# Fetch
# =============================================================================


def archive_url(base_path: str, file_name: str) -> str:
    return f"{base_path.rstrip('/')}/{file_name}"


async def fetch_archive(
    client: httpx.AsyncClient,
    url: str,
    limits: ArchiveLimits = ArchiveLimits(),
    file_name: Optional[str] = None,
) -> bytes:
    """
    Stream an archive body, refusing anything over the payload cap.

    A declared Content-Length over the cap fails before the body is read;
    otherwise the download stops as soon as the running size passes it.

    Raises:
        FetchFailedError: Non-2xx response or transport error
        ArchiveValidationError: Body larger than limits.max_archive_bytes
    """
    try:
        async with client.stream("GET", url) as response:
            if not response.is_success:
                raise FetchFailedError(
                    f"Failed to fetch {url}: {response.status_code}",
                    file_name,
                    status_code=response.status_code,
                )

            declared = response.headers.get("Content-Length")
            if declared and declared.isdigit():
                check_payload_size(int(declared), limits, file_name)

            buffer = bytearray()
            async for chunk in response.aiter_bytes():
                buffer.extend(chunk)
                check_payload_size(len(buffer), limits, file_name)
            return bytes(buffer)
    except httpx.HTTPError as e:
        raise FetchFailedError(f"Failed to fetch {url}: {e}", file_name) from e


# =============================================================================
# Loader
# =============================================================================


async def load_league(
    league_file: LeagueFile,
    base_path: str,
    *,
    client: httpx.AsyncClient,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    limits: ArchiveLimits = ArchiveLimits(),
    category_id: Optional[str] = None,
    category_name: Optional[str] = None,
) -> League:
    """
    Fetch and aggregate one archive under a deadline.

    The deadline covers fetch and processing. On expiry the in-flight fetch
    is cancelled and LoadTimeoutError names the archive file.

    Raises:
        LeagueLoadError: FetchFailedError, ArchiveValidationError or LoadTimeoutError
    """
    file_name = league_file.file_name
    url = archive_url(base_path, file_name)

    async def _fetch_and_build() -> League:
        payload = await fetch_archive(client, url, limits, file_name)
        return build_league(
            payload,
            league_file.title,
            limits=limits,
            file_name=file_name,
            category_id=category_id,
            category_name=category_name,
            urls=league_file.urls,
        )

    with LogContext(archive=file_name, category=category_id):
        logger.info("[loader] Loading %s", url)
        start = time.perf_counter()
        try:
            league = await asyncio.wait_for(_fetch_and_build(), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError as e:
            error = LoadTimeoutError(file_name, timeout_ms)
            logger.warning("[loader] %s", error, extra={"error_kind": error.kind.value})
            raise error from e
        except LeagueLoadError as e:
            logger.warning("[loader] %s", e, extra={"error_kind": e.kind.value})
            raise

        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.info(
            "[loader] Loaded %s: %d rounds, %d competitors in %.0fms",
            league.title,
            len(league.rounds),
            len(league.competitors),
            duration_ms,
            extra={
                "rounds": len(league.rounds),
                "competitors": len(league.competitors),
                "duration_ms": duration_ms,
            },
        )
        return league
