"""
tests/conftest.py

Shared fixtures. HTTP is always faked with httpx.MockTransport; settings
are rebuilt per test so environment overrides never leak.
"""

from __future__ import annotations

from typing import Generator

import pytest

from musicleague.config import reset_settings
from musicleague.core.logging import clear_context
from musicleague.core.trace_middleware import set_trace_id
from musicleague.models import LeagueCategory, LeagueFile

from tests.helpers import scenario_archive, two_round_archive


@pytest.fixture(autouse=True)
def _isolate_settings() -> Generator[None, None, None]:
    """Fresh settings, logging context and trace ID for every test."""
    reset_settings()
    clear_context()
    yield
    reset_settings()
    clear_context()
    set_trace_id("no-trace")


@pytest.fixture
def categories() -> list[LeagueCategory]:
    """Two categories: 'coffee' with two archives, 'words' with one."""
    return [
        LeagueCategory(
            id="coffee",
            name="Coffee Tunes",
            leagues=(
                LeagueFile(title="Morning Brew", file_name="morning.zip"),
                LeagueFile(title="Late Night Roast", file_name="late.zip"),
            ),
        ),
        LeagueCategory(
            id="words",
            name="Words",
            leagues=(LeagueFile(title="Word Play", file_name="words.zip"),),
        ),
    ]


@pytest.fixture
def archive_routes() -> dict[str, bytes]:
    """Every archive of the `categories` fixture, served under DATA_URL."""
    return {
        "/data/coffee/morning.zip": scenario_archive(),
        "/data/coffee/late.zip": two_round_archive(),
        "/data/words/words.zip": scenario_archive(),
    }
