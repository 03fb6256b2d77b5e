"""
Domain records for league archives and computed standings.

Parsed rows and computed values are frozen dataclasses: once the loader
attaches standings to a round, nothing downstream can change them.
League descriptors come from external configuration and are validated with
pydantic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_COMPETITOR = "Unknown"


# =============================================================================
# Parsed table rows
# =============================================================================


@dataclass(frozen=True, slots=True)
class Competitor:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class SubmissionRecord:
    """One submitted track in one round. (round_id, track_uri) is the natural key."""

    track_uri: str
    title: str
    album: str
    artists: str
    submitter_id: str
    created_at: str
    comment: str
    round_id: str
    visible_to_voters: bool


@dataclass(frozen=True, slots=True)
class VoteRecord:
    track_uri: str
    voter_id: str
    created_at: str
    points_assigned: int
    comment: str
    round_id: str


@dataclass(frozen=True, slots=True)
class RoundDefinition:
    id: str
    created_at: str
    name: str
    description: str
    playlist_url: Optional[str] = None


# =============================================================================
# Computed values
# =============================================================================


@dataclass(frozen=True, slots=True)
class Standing:
    position: int
    name: str
    points: int
    song: str = ""


@dataclass(frozen=True, slots=True)
class Round:
    """A round definition with its leaderboard attached."""

    id: str
    created_at: str
    name: str
    description: str
    playlist_url: Optional[str]
    standings: tuple[Standing, ...]

    @classmethod
    def from_definition(cls, definition: RoundDefinition, standings: tuple[Standing, ...]) -> "Round":
        return cls(
            id=definition.id,
            created_at=definition.created_at,
            name=definition.name,
            description=definition.description,
            playlist_url=definition.playlist_url,
            standings=standings,
        )


@dataclass(frozen=True, slots=True)
class League:
    """Fully aggregated result of one archive."""

    title: str
    rounds: tuple[Round, ...]
    league_standings: tuple[Standing, ...]
    votes: tuple[VoteRecord, ...] = ()
    competitors: tuple[Competitor, ...] = ()
    submissions: tuple[SubmissionRecord, ...] = ()
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    urls: Optional[dict[str, Any]] = field(default=None, hash=False, compare=True)


# =============================================================================
# League descriptors (external configuration)
# =============================================================================


class LeagueFile(BaseModel):
    """One configured archive: where to fetch it and what to call it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: Optional[str] = None
    title: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1, alias="fileName")
    urls: Optional[dict[str, Any]] = None


class LeagueCategory(BaseModel):
    """A named group of league archives served from one base path."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str
    description: Optional[str] = None
    theme_color: Optional[str] = Field(default=None, alias="themeColor")
    base_path: Optional[str] = Field(default=None, alias="basePath")
    leagues: tuple[LeagueFile, ...] = ()

    def data_path(self, data_url: str) -> str:
        """Base path the category's archives are fetched from."""
        if self.base_path:
            return self.base_path.rstrip("/")
        return f"{data_url.rstrip('/')}/{self.id}"
