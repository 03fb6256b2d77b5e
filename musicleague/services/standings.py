"""
Music League Engine - Standings Aggregator

Ranking policy:
- Sort by points descending.
- Ties keep first-seen order (stable sort, no secondary key).
- Positions are 1..N over the sorted list; equal points never share a position.

Pure computation: no I/O, no clock, no error conditions.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from musicleague.models import (
    UNKNOWN_COMPETITOR,
    League,
    Round,
    RoundDefinition,
    Standing,
    SubmissionRecord,
)


def rank(entries: Iterable[Tuple[str, int, str]]) -> Tuple[Standing, ...]:
    """Turn (name, points, song) tuples into positioned Standings."""
    ordered = sorted(entries, key=lambda entry: entry[1], reverse=True)
    return tuple(
        Standing(position=i + 1, name=name, points=points, song=song)
        for i, (name, points, song) in enumerate(ordered)
    )


def compute_round_standings(
    round_def: RoundDefinition,
    submissions: Sequence[SubmissionRecord],
    points_by_submission: Mapping[Tuple[str, str], int],
    competitor_name_by_id: Mapping[str, str],
) -> Tuple[Standing, ...]:
    """
    Rank one round's submitters.

    A name with several submissions in the round gets one standing: points
    summed, song = title of its first submission.
    """
    totals: Dict[str, List] = {}
    for sub in submissions:
        name = competitor_name_by_id.get(sub.submitter_id, UNKNOWN_COMPETITOR)
        points = points_by_submission.get((round_def.id, sub.track_uri), 0)
        if name in totals:
            totals[name][0] += points
        else:
            totals[name] = [points, sub.title]
    return rank((name, points, song) for name, (points, song) in totals.items())


def compute_league_standings(rounds: Iterable[Round]) -> Tuple[Standing, ...]:
    """Sum each name's points over every round; ties in first-seen order."""
    totals: Dict[str, int] = {}
    for round_ in rounds:
        for standing in round_.standings:
            totals[standing.name] = totals.get(standing.name, 0) + standing.points
    return rank((name, points, "") for name, points in totals.items())


def compute_combined_standings(leagues: Iterable[League]) -> Tuple[Standing, ...]:
    """Sum each name's league points across several leagues."""
    totals: Dict[str, int] = {}
    for league in leagues:
        for standing in league.league_standings:
            totals[standing.name] = totals.get(standing.name, 0) + standing.points
    return rank((name, points, "") for name, points in totals.items())
