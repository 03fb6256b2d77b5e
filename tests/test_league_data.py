"""
Tests for the category fan-out and snapshot queries.

Verifies that:
1. Every archive is loaded, failures are recorded without affecting siblings
2. Categories with nothing loaded map to None, and no data at all sets `error`
3. Top standings, summaries and slug lookup read the snapshot correctly
"""

from __future__ import annotations

import httpx
import pytest

from musicleague.core.errors import ErrorKind
from musicleague.models import Competitor, League, LeagueCategory, LeagueFile, Standing
from musicleague.services import league_data
from musicleague.services.league_data import (
    NO_DATA_ERROR,
    LeaguesSnapshot,
    category_summaries,
    find_league_by_slug,
    get_all_leagues,
    get_top_standings,
    load_all_leagues,
)

from tests.helpers import DATA_URL, archive_transport, scenario_archive


async def _load(categories, routes, **kwargs) -> LeaguesSnapshot:
    async with httpx.AsyncClient(transport=archive_transport(routes)) as client:
        return await load_all_leagues(categories, DATA_URL, client=client, **kwargs)


class TestLoadAllLeagues:
    @pytest.mark.asyncio
    async def test_loads_every_archive(self, categories, archive_routes):
        snapshot = await _load(categories, archive_routes)

        assert snapshot.error is None
        assert snapshot.failures == ()
        assert [l.title for l in snapshot.leagues_by_category["coffee"]] == [
            "Morning Brew",
            "Late Night Roast",
        ]
        assert [l.title for l in snapshot.leagues_by_category["words"]] == ["Word Play"]
        assert snapshot.leagues_by_category["coffee"][0].category_name == "Coffee Tunes"

    @pytest.mark.asyncio
    async def test_failure_does_not_affect_siblings(self, categories, archive_routes):
        del archive_routes["/data/coffee/late.zip"]
        snapshot = await _load(categories, archive_routes)

        assert [l.title for l in snapshot.leagues_by_category["coffee"]] == ["Morning Brew"]
        assert snapshot.leagues_by_category["words"] is not None
        (failure,) = snapshot.failures
        assert failure.category_id == "coffee"
        assert failure.title == "Late Night Roast"
        assert failure.file_name == "late.zip"
        assert failure.kind == ErrorKind.FETCH_FAILED
        assert snapshot.degraded
        assert snapshot.error is None

    @pytest.mark.asyncio
    async def test_empty_category_maps_to_none(self, categories, archive_routes):
        archive_routes["/data/words/words.zip"] = b"not a zip"
        snapshot = await _load(categories, archive_routes)

        assert snapshot.leagues_by_category["words"] is None
        assert snapshot.failures[0].kind == ErrorKind.INVALID_ARCHIVE

    @pytest.mark.asyncio
    async def test_nothing_loaded_sets_error(self, categories):
        snapshot = await _load(categories, {})

        assert snapshot.error == NO_DATA_ERROR
        assert not snapshot.has_data
        assert len(snapshot.failures) == 3
        assert all(v is None for v in snapshot.leagues_by_category.values())

    @pytest.mark.asyncio
    async def test_no_categories(self):
        snapshot = await _load([], {})
        assert snapshot.leagues_by_category == {}
        assert snapshot.error == NO_DATA_ERROR

    @pytest.mark.asyncio
    async def test_base_path_overrides_data_url(self):
        category = LeagueCategory(
            id="hos",
            name="Head of Steam",
            base_path="http://mirror.test/hos/",
            leagues=(LeagueFile(title="Steam", file_name="steam.zip"),),
        )
        snapshot = await _load([category], {"/hos/steam.zip": scenario_archive()})
        assert snapshot.leagues_by_category["hos"][0].title == "Steam"

    @pytest.mark.asyncio
    async def test_unexpected_error_recorded_as_internal(self, categories, archive_routes, monkeypatch):
        real_load = league_data.load_league

        async def flaky_load(league_file, base_path, **kwargs):
            if league_file.file_name == "words.zip":
                raise RuntimeError("bug")
            return await real_load(league_file, base_path, **kwargs)

        monkeypatch.setattr(league_data, "load_league", flaky_load)
        snapshot = await _load(categories, archive_routes)

        (failure,) = snapshot.failures
        assert failure.kind == ErrorKind.INTERNAL
        assert "RuntimeError" in failure.message
        assert len(snapshot.leagues_by_category["coffee"]) == 2

    @pytest.mark.asyncio
    async def test_timeout_recorded_per_archive(self, categories, archive_routes):
        async with httpx.AsyncClient(transport=archive_transport(archive_routes, delay_s=1.0)) as client:
            snapshot = await load_all_leagues(categories, DATA_URL, client=client, timeout_ms=20)
        assert {f.kind for f in snapshot.failures} == {ErrorKind.TIMEOUT}
        assert len(snapshot.failures) == 3


def _people(*ids: str) -> tuple[Competitor, ...]:
    return tuple(Competitor(id_, id_.title()) for id_ in ids)


def _snapshot() -> LeaguesSnapshot:
    coffee = (
        League(
            "Morning Brew",
            (),
            (Standing(1, "Alice", 13), Standing(2, "Bob", 7)),
            competitors=_people("a", "b"),
        ),
        League(
            "Late Night Roast",
            (),
            (Standing(1, "Bob", 9), Standing(2, "Cara", 8)),
            competitors=_people("a", "b", "c"),
        ),
    )
    words = (League("Word Play", (), (Standing(1, "Dev", 4),), competitors=_people("d")),)
    return LeaguesSnapshot(leagues_by_category={"coffee": coffee, "words": words, "empty": None})


class TestQueries:
    def test_get_all_leagues_flattens_in_order(self):
        assert [l.title for l in get_all_leagues(_snapshot())] == [
            "Morning Brew",
            "Late Night Roast",
            "Word Play",
        ]

    def test_find_league_by_slug(self):
        league = find_league_by_slug(_snapshot(), "coffee", "late-night-roast")
        assert league is not None
        assert league.title == "Late Night Roast"

    def test_find_league_by_slug_misses(self):
        assert find_league_by_slug(_snapshot(), "coffee", "word-play") is None
        assert find_league_by_slug(_snapshot(), "empty", "anything") is None
        assert find_league_by_slug(_snapshot(), "nope", "morning-brew") is None

    def test_top_standings_combined_and_ranked(self):
        top = get_top_standings(_snapshot())
        assert [(s.position, s.name, s.points) for s in top] == [
            (1, "Bob", 16),
            (2, "Alice", 13),
            (3, "Cara", 8),
            (4, "Dev", 4),
        ]

    def test_top_standings_limit(self):
        assert [s.name for s in get_top_standings(_snapshot(), limit=2)] == ["Bob", "Alice"]

    def test_top_standings_without_snapshot(self):
        assert get_top_standings(None) == ()

    def test_category_summaries(self):
        categories = [
            LeagueCategory(id="coffee", name="Coffee Tunes", theme_color="orange"),
            LeagueCategory(id="words", name="Words"),
            LeagueCategory(id="empty", name="Nothing Here"),
        ]
        summaries = category_summaries(_snapshot(), categories)

        assert [s.id for s in summaries] == ["coffee", "words"]
        coffee = summaries[0]
        assert coffee.league_count == 2
        assert coffee.total_participants == 5
        assert coffee.to_dict()["leagues"][1] == {"title": "Late Night Roast", "slug": "late-night-roast"}
        assert coffee.to_dict()["theme_color"] == "orange"
