"""
Music League Engine - Entity Joiner

Builds the lookup maps standings are computed from. There is no database:
the four tables are joined in memory with plain dicts built in one pass.

Default-on-miss:
    name_for(unknown submitter id)   -> "Unknown"
    points_for(round with no votes)  -> 0
Orphan votes (no matching submission) are summed into their key but never
read, so referential gaps in the source data can never raise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from musicleague.ingest.tables import ParsedTables
from musicleague.models import (
    UNKNOWN_COMPETITOR,
    Competitor,
    RoundDefinition,
    SubmissionRecord,
    VoteRecord,
)

logger = logging.getLogger(__name__)

SubmissionKey = Tuple[str, str]


@dataclass(slots=True)
class LeagueIndex:
    """Lookup maps for one archive."""

    competitor_name_by_id: Dict[str, str] = field(default_factory=dict)
    submissions_by_round: Dict[str, List[SubmissionRecord]] = field(default_factory=dict)
    points_by_submission: Dict[SubmissionKey, int] = field(default_factory=dict)
    rounds: List[RoundDefinition] = field(default_factory=list)
    duplicate_submissions: int = 0

    def name_for(self, submitter_id: str) -> str:
        return self.competitor_name_by_id.get(submitter_id, UNKNOWN_COMPETITOR)

    def points_for(self, round_id: str, track_uri: str) -> int:
        return self.points_by_submission.get((round_id, track_uri), 0)

    def submissions_for(self, round_id: str) -> List[SubmissionRecord]:
        return self.submissions_by_round.get(round_id, [])


def index_competitors(competitors: Iterable[Competitor]) -> Dict[str, str]:
    """id -> name; a repeated id overwrites the earlier name."""
    return {c.id: c.name for c in competitors}


def index_submissions(
    submissions: Iterable[SubmissionRecord],
) -> Tuple[Dict[str, List[SubmissionRecord]], int]:
    """
    Group submissions by round in insertion order.

    (round_id, track_uri) is the natural key; a repeat keeps the first row.

    Returns:
        (submissions_by_round, number of duplicate rows skipped)
    """
    by_round: Dict[str, List[SubmissionRecord]] = {}
    seen: set[SubmissionKey] = set()
    duplicates = 0
    for sub in submissions:
        key = (sub.round_id, sub.track_uri)
        if key in seen:
            duplicates += 1
            continue
        seen.add(key)
        by_round.setdefault(sub.round_id, []).append(sub)
    return by_round, duplicates


def sum_votes(votes: Iterable[VoteRecord]) -> Dict[SubmissionKey, int]:
    """(round_id, track_uri) -> sum of points_assigned over every vote."""
    totals: Dict[SubmissionKey, int] = {}
    for vote in votes:
        key = (vote.round_id, vote.track_uri)
        totals[key] = totals.get(key, 0) + vote.points_assigned
    return totals


def order_rounds(rounds: Iterable[RoundDefinition]) -> List[RoundDefinition]:
    """First-appearance order; a repeated id keeps its slot and takes the later definition."""
    by_id: Dict[str, RoundDefinition] = {}
    for definition in rounds:
        by_id[definition.id] = definition
    return list(by_id.values())


def build_index(tables: ParsedTables) -> LeagueIndex:
    """Join parsed tables into a LeagueIndex. Never raises on data gaps."""
    submissions_by_round, duplicates = index_submissions(tables.submissions)
    if duplicates:
        logger.debug("[joiner] Skipped %d duplicate submissions", duplicates)

    return LeagueIndex(
        competitor_name_by_id=index_competitors(tables.competitors),
        submissions_by_round=submissions_by_round,
        points_by_submission=sum_votes(tables.votes),
        rounds=order_rounds(tables.rounds),
        duplicate_submissions=duplicates,
    )
