"""
musicleague/ingest/tables.py
============================
CSV-to-record parsing for the four league tables.

An archive entry's role is decided by its NAME, not its headers:
    "competitor" -> Competitor        (ID, Name)
    "round"      -> RoundDefinition   (ID, Created, Name, Description, Playlist URL)
    "submission" -> SubmissionRecord  (Spotify URI, Title, Album, Artist(s), Submitter ID,
                                       Created, Comment, Round ID, Visible To Voters)
    "vote"       -> VoteRecord        (Spotify URI, Voter ID, Created, Points Assigned,
                                       Comment, Round ID)

Entries matching none of these are ignored.

Parsing is best-effort: community exports vary in quality, so a malformed
row is dropped and counted instead of failing the table.
"""

from __future__ import annotations

import csv
import io
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from musicleague.models import Competitor, RoundDefinition, SubmissionRecord, VoteRecord

logger = logging.getLogger(__name__)


class TableKind(str, Enum):
    COMPETITORS = "competitors"
    ROUNDS = "rounds"
    SUBMISSIONS = "submissions"
    VOTES = "votes"


# Checked in this order; first substring match wins
_NAME_MARKERS: Tuple[Tuple[str, TableKind], ...] = (
    ("competitor", TableKind.COMPETITORS),
    ("round", TableKind.ROUNDS),
    ("submission", TableKind.SUBMISSIONS),
    ("vote", TableKind.VOTES),
)

# Canonical CSV headers (case-insensitive matching)
CANONICAL_HEADERS = {
    "id": "id",
    "name": "name",
    "created": "created",
    "description": "description",
    "playlist url": "playlist_url",
    "spotify uri": "track_uri",
    "title": "title",
    "album": "album",
    "artist(s)": "artists",
    "submitter id": "submitter_id",
    "comment": "comment",
    "round id": "round_id",
    "visible to voters": "visible_to_voters",
    "voter id": "voter_id",
    "points assigned": "points_assigned",
}

# Columns that must be non-blank for a row to be kept
REQUIRED_COLUMNS: Dict[TableKind, Tuple[str, ...]] = {
    TableKind.COMPETITORS: ("id",),
    TableKind.ROUNDS: ("id",),
    TableKind.SUBMISSIONS: ("track_uri", "round_id"),
    TableKind.VOTES: ("track_uri", "round_id"),
}

_TRUTHY = {"yes", "y", "true", "1"}


class MalformedRowError(ValueError):
    """A row that cannot be mapped onto its table's record type."""


# =============================================================================
# Helper Functions
# =============================================================================


def classify_entry(name: str) -> Optional[TableKind]:
    """Pick the table kind for an archive entry name, or None to ignore it."""
    key = name.lower()
    for marker, kind in _NAME_MARKERS:
        if marker in key:
            return kind
    return None


def map_headers(raw_headers: List[str]) -> Dict[str, Optional[str]]:
    """Map raw CSV headers to canonical column names (None if unrecognized)."""
    mapping: Dict[str, Optional[str]] = {}
    for raw in raw_headers:
        if raw is None:
            continue
        normalized = " ".join(raw.replace("﻿", "").lower().split())
        mapping[raw] = CANONICAL_HEADERS.get(normalized)
    return mapping


def parse_points(value: Optional[str]) -> int:
    """
    Parse a Points Assigned cell. Never raises.

    "10" -> 10, "-1" -> -1, "2.9" -> 2, "" / "abc" / "nan" -> 0
    """
    if value is None:
        return 0
    text = value.strip()
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return 0
    if not math.isfinite(number):
        return 0
    return int(number)


def parse_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUTHY


# =============================================================================
# Row builders
# =============================================================================


def _competitor(mapped: Mapping[str, str]) -> Competitor:
    return Competitor(id=mapped["id"], name=mapped.get("name", ""))


def _round(mapped: Mapping[str, str]) -> RoundDefinition:
    return RoundDefinition(
        id=mapped["id"],
        created_at=mapped.get("created", ""),
        name=mapped.get("name", ""),
        description=mapped.get("description", ""),
        playlist_url=mapped.get("playlist_url") or None,
    )


def _submission(mapped: Mapping[str, str]) -> SubmissionRecord:
    return SubmissionRecord(
        track_uri=mapped["track_uri"],
        title=mapped.get("title", ""),
        album=mapped.get("album", ""),
        artists=mapped.get("artists", ""),
        submitter_id=mapped.get("submitter_id", ""),
        created_at=mapped.get("created", ""),
        comment=mapped.get("comment", ""),
        round_id=mapped["round_id"],
        visible_to_voters=parse_flag(mapped.get("visible_to_voters")),
    )


def _vote(mapped: Mapping[str, str]) -> VoteRecord:
    return VoteRecord(
        track_uri=mapped["track_uri"],
        voter_id=mapped.get("voter_id", ""),
        created_at=mapped.get("created", ""),
        points_assigned=parse_points(mapped.get("points_assigned")),
        comment=mapped.get("comment", ""),
        round_id=mapped["round_id"],
    )


_BUILDERS: Dict[TableKind, Callable[[Mapping[str, str]], Any]] = {
    TableKind.COMPETITORS: _competitor,
    TableKind.ROUNDS: _round,
    TableKind.SUBMISSIONS: _submission,
    TableKind.VOTES: _vote,
}


def _parse_row(
    kind: TableKind,
    row: Dict[Optional[str], Any],
    header_mapping: Dict[str, Optional[str]],
) -> Any:
    """Map one csv.DictReader row onto its record type."""
    mapped: Dict[str, str] = {}
    for raw_col, canonical_col in header_mapping.items():
        value = row.get(raw_col)
        # Short rows come back as None for the missing columns
        if canonical_col and isinstance(value, str):
            mapped[canonical_col] = value.strip()

    for col in REQUIRED_COLUMNS[kind]:
        if not mapped.get(col):
            raise MalformedRowError(f"Missing or empty {col}")

    return _BUILDERS[kind](mapped)


# =============================================================================
# CSV Parser
# =============================================================================


@dataclass(slots=True)
class ParseResult:
    """Result of parsing one table."""

    kind: TableKind
    rows: List[Any]
    headers: List[str]
    dropped: List[Tuple[int, str]] = field(default_factory=list)


def parse_table(csv_text: str, kind: TableKind) -> ParseResult:
    """
    Parse CSV text into records for `kind`.

    The first non-blank row is the header. Blank lines are skipped. Rows that
    cannot be tokenized or lack their key column are dropped and reported in
    `ParseResult.dropped` as (line_number, reason).
    """
    stream = io.StringIO(csv_text, newline="")
    header_reader = csv.reader(stream)
    headers: List[str] = []
    try:
        for raw in header_reader:
            if any(cell.strip() for cell in raw):
                headers = raw
                break
    except csv.Error as e:
        logger.debug("[tables] Unreadable header in %s table: %s", kind.value, e)
        return ParseResult(kind=kind, rows=[], headers=[], dropped=[(header_reader.line_num, str(e))])

    if not headers:
        return ParseResult(kind=kind, rows=[], headers=[])

    # Data rows share the stream; line numbers continue after the header.
    header_line = header_reader.line_num
    reader = csv.DictReader(stream, fieldnames=headers)
    header_mapping = map_headers(headers)
    rows: List[Any] = []
    dropped: List[Tuple[int, str]] = []

    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            dropped.append((header_line + reader.line_num, str(e)))
            continue

        if not any(isinstance(v, str) and v.strip() for v in row.values()):
            continue

        try:
            rows.append(_parse_row(kind, row, header_mapping))
        except MalformedRowError as e:
            dropped.append((header_line + reader.line_num, str(e)))

    if dropped:
        logger.debug(
            "[tables] Dropped %d malformed %s rows",
            len(dropped),
            kind.value,
            extra={"dropped_rows": len(dropped)},
        )

    return ParseResult(kind=kind, rows=rows, headers=headers, dropped=dropped)


# =============================================================================
# Whole-archive accumulation
# =============================================================================


@dataclass(slots=True)
class ParsedTables:
    """All rows of one archive, accumulated by kind in archive order."""

    competitors: List[Competitor] = field(default_factory=list)
    rounds: List[RoundDefinition] = field(default_factory=list)
    submissions: List[SubmissionRecord] = field(default_factory=list)
    votes: List[VoteRecord] = field(default_factory=list)
    dropped_rows: int = 0
    ignored_entries: List[str] = field(default_factory=list)

    def extend(self, result: ParseResult) -> None:
        target = {
            TableKind.COMPETITORS: self.competitors,
            TableKind.ROUNDS: self.rounds,
            TableKind.SUBMISSIONS: self.submissions,
            TableKind.VOTES: self.votes,
        }[result.kind]
        target.extend(result.rows)
        self.dropped_rows += len(result.dropped)


def parse_archive_tables(files: Mapping[str, str]) -> ParsedTables:
    """Parse every recognized entry of a validated archive."""
    tables = ParsedTables()
    for name, text in files.items():
        kind = classify_entry(name)
        if kind is None:
            tables.ignored_entries.append(name)
            logger.debug("[tables] Ignoring unrecognized entry %s", name)
            continue
        tables.extend(parse_table(text, kind))
    return tables
