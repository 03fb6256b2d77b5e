"""
Tests for settings and the category table.

Verifies that:
1. Defaults match the documented limits
2. Environment overrides and spelling normalization work
3. The category table validates with camelCase keys
"""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from musicleague.config import Settings, get_settings, load_categories, parse_categories, reset_settings
from musicleague.ingest.archive import ArchiveLimits

MB = 1024 * 1024


class TestSettingsDefaults:
    def test_defaults(self, monkeypatch):
        for name in ("LOAD_TIMEOUT_MS", "MAX_ARCHIVE_BYTES", "ENVIRONMENT", "DEFAULT_PRIVACY_MODE"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings()
        assert settings.LOAD_TIMEOUT_MS == 5000
        assert settings.ENVIRONMENT == "dev"
        assert settings.DEFAULT_PRIVACY_MODE == "full"
        assert settings.is_production is False

    def test_archive_limits(self):
        limits = Settings(MAX_ENTRIES=10, MAX_ENTRY_BYTES=MB).archive_limits
        assert limits == ArchiveLimits(
            max_archive_bytes=50 * MB,
            max_entries=10,
            max_entry_bytes=MB,
            max_total_bytes=200 * MB,
        )


class TestSettingsEnvironment:
    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("LOAD_TIMEOUT_MS", "1500")
        monkeypatch.setenv("league_data_url", "http://cdn.test/data")
        reset_settings()
        settings = get_settings()
        assert settings.LOAD_TIMEOUT_MS == 1500
        assert settings.LEAGUE_DATA_URL == "http://cdn.test/data"

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    @pytest.mark.parametrize("raw,expected", [("production", "prod"), ("Development", "dev"), ('"staging"', "staging")])
    def test_environment_normalized(self, monkeypatch, raw, expected):
        monkeypatch.setenv("ENVIRONMENT", raw)
        assert Settings().ENVIRONMENT == expected

    def test_log_level_uppercased(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert Settings().LOG_LEVEL == "DEBUG"

    def test_invalid_privacy_mode_rejected(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_PRIVACY_MODE", "nicknames")
        with pytest.raises(ValidationError):
            Settings()

    def test_non_positive_timeout_rejected(self, monkeypatch):
        monkeypatch.setenv("LOAD_TIMEOUT_MS", "0")
        with pytest.raises(ValidationError):
            Settings()


CATEGORY_TABLE = [
    {
        "id": "coffee",
        "name": "Coffee Tunes",
        "themeColor": "from-orange-500 to-red-500",
        "leagues": [
            {"title": "Morning Brew", "fileName": "morning.zip", "urls": {"playlist": "https://x/p"}},
            {"id": "late", "title": "Late Night Roast", "fileName": "late.zip"},
        ],
    },
    {"id": "words", "name": "Words", "basePath": "http://mirror.test/words", "leagues": []},
]


class TestCategories:
    def test_parse_aliases(self):
        coffee, words = parse_categories(CATEGORY_TABLE)
        assert coffee.theme_color == "from-orange-500 to-red-500"
        assert coffee.leagues[0].file_name == "morning.zip"
        assert coffee.leagues[0].urls == {"playlist": "https://x/p"}
        assert coffee.leagues[1].id == "late"
        assert words.leagues == ()

    def test_data_path(self):
        coffee, words = parse_categories(CATEGORY_TABLE)
        assert coffee.data_path("http://host/data/") == "http://host/data/coffee"
        assert words.data_path("http://host/data") == "http://mirror.test/words"

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "leagues.json"
        path.write_text(json.dumps(CATEGORY_TABLE), encoding="utf-8")
        categories = load_categories(path)
        assert [c.id for c in categories] == ["coffee", "words"]

    def test_missing_file_name_rejected(self):
        with pytest.raises(ValidationError):
            parse_categories([{"id": "x", "name": "X", "leagues": [{"title": "No file"}]}])

    def test_empty_title_rejected(self):
        with pytest.raises(ValidationError):
            parse_categories([{"id": "x", "name": "X", "leagues": [{"title": "", "fileName": "a.zip"}]}])

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_categories(tmp_path / "nope.json")
