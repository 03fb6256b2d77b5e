"""
tests/helpers.py

In-memory archive builders and fake HTTP transports. Nothing here touches
the network or the filesystem.
"""

from __future__ import annotations

import asyncio
import csv
import io
import zipfile
from typing import Callable, Iterable, Mapping, Optional, Sequence, Union

import httpx

COMPETITOR_HEADER = ["ID", "Name"]
ROUND_HEADER = ["ID", "Created", "Name", "Description", "Playlist URL"]
SUBMISSION_HEADER = [
    "Spotify URI",
    "Title",
    "Album",
    "Artist(s)",
    "Submitter ID",
    "Created",
    "Comment",
    "Round ID",
    "Visible To Voters",
]
VOTE_HEADER = ["Spotify URI", "Voter ID", "Created", "Points Assigned", "Comment", "Round ID"]

DATA_URL = "http://archives.test/data"


# =============================================================================
# CSV / ZIP builders
# =============================================================================


def csv_text(header: Sequence[str], rows: Iterable[Sequence[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def make_zip(files: Mapping[str, Union[str, bytes]]) -> bytes:
    """Build a ZIP in memory; names are stored exactly as given."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def competitor(id_: str, name: str) -> list[str]:
    return [id_, name]


def round_row(id_: str, name: str = "", description: str = "", playlist: str = "") -> list[str]:
    return [id_, "2024-01-01T00:00:00Z", name, description, playlist]


def submission(
    uri: str, submitter_id: str, round_id: str, title: str = "", visible: str = "Yes"
) -> list[str]:
    return [uri, title, "Album", "Artist", submitter_id, "2024-01-02T00:00:00Z", "", round_id, visible]


def vote(uri: str, round_id: str, points: object, voter_id: str = "v1") -> list[str]:
    return [uri, voter_id, "2024-01-03T00:00:00Z", str(points), "", round_id]


def league_files(
    competitors: Iterable[Sequence[object]] = (),
    rounds: Iterable[Sequence[object]] = (),
    submissions: Iterable[Sequence[object]] = (),
    votes: Iterable[Sequence[object]] = (),
) -> dict[str, str]:
    return {
        "competitors.csv": csv_text(COMPETITOR_HEADER, competitors),
        "rounds.csv": csv_text(ROUND_HEADER, rounds),
        "submissions.csv": csv_text(SUBMISSION_HEADER, submissions),
        "votes.csv": csv_text(VOTE_HEADER, votes),
    }


def league_archive(**tables: Iterable[Sequence[object]]) -> bytes:
    return make_zip(league_files(**tables))


def scenario_archive() -> bytes:
    """Two competitors, one round, two votes on t1 and one on t2."""
    return league_archive(
        competitors=[competitor("u1", "Alice"), competitor("u2", "Bob")],
        rounds=[round_row("r1", "Round 1")],
        submissions=[
            submission("t1", "u1", "r1", "Song A"),
            submission("t2", "u2", "r1", "Song B"),
        ],
        votes=[vote("t1", "r1", 10), vote("t2", "r1", 7), vote("t1", "r1", 3)],
    )


def two_round_archive() -> bytes:
    return league_archive(
        competitors=[competitor("u1", "Alice"), competitor("u2", "Bob"), competitor("u3", "Cara")],
        rounds=[round_row("r1", "Openers"), round_row("r2", "Closers")],
        submissions=[
            submission("t1", "u1", "r1", "Song A"),
            submission("t2", "u2", "r1", "Song B"),
            submission("t3", "u3", "r1", "Song C"),
            submission("t4", "u1", "r2", "Song D"),
            submission("t5", "u2", "r2", "Song E"),
            submission("t6", "u3", "r2", "Song F"),
        ],
        votes=[
            vote("t1", "r1", 5),
            vote("t2", "r1", 8),
            vote("t3", "r1", 1),
            vote("t4", "r2", 6),
            vote("t5", "r2", 2),
            vote("t6", "r2", 4),
        ],
    )


# =============================================================================
# Fake transports
# =============================================================================


Route = Union[bytes, int, Callable[[httpx.Request], httpx.Response]]


def archive_transport(routes: Mapping[str, Route], delay_s: Optional[float] = None) -> httpx.MockTransport:
    """
    Serve archives by URL path.

    A bytes value is served as a 200 ZIP body, an int as a bare status code,
    a callable builds the response itself. Unknown paths are 404.
    """

    async def handler(request: httpx.Request) -> httpx.Response:
        if delay_s is not None:
            await asyncio.sleep(delay_s)
        route = routes.get(request.url.path)
        if route is None:
            return httpx.Response(404)
        if isinstance(route, bytes):
            return httpx.Response(200, content=route, headers={"Content-Type": "application/zip"})
        if isinstance(route, int):
            return httpx.Response(route)
        return route(request)

    return httpx.MockTransport(handler)
