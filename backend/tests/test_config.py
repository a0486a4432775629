"""
Unit tests for HighlightSettings and app.config.

Tests cover:
- Defaults and HIGHLIGHT_* environment overrides
- Inline ";" separated exclude rules
- Exclude rules read from a file
- Invalid values rejected at construction, not at import
"""

import pytest
from pydantic import ValidationError

from app import config
from app.models.settings_types import HighlightSettings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "HIGHLIGHT_EXCLUDE_PATTERNS",
        "HIGHLIGHT_EXCLUDE_FILE",
        "HIGHLIGHT_MAX_CACHE_SIZE",
        "HIGHLIGHT_PERFORMANCE_THRESHOLD_MS",
        "HIGHLIGHT_DB_PATH",
        "HIGHLIGHT_VAULT_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


class TestHighlightSettings:
    def test_defaults(self):
        settings = HighlightSettings(_env_file=None)

        assert settings.exclude_patterns == ""
        assert settings.max_cache_size == 100
        assert settings.performance_threshold_ms == 100.0
        assert settings.db_path == "data/highlight_comments.db"
        assert settings.vault_dir == "vault"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("HIGHLIGHT_MAX_CACHE_SIZE", "25")
        monkeypatch.setenv("HIGHLIGHT_PERFORMANCE_THRESHOLD_MS", "12.5")
        monkeypatch.setenv("HIGHLIGHT_DB_PATH", "/tmp/comments.db")
        monkeypatch.setenv("HIGHLIGHT_VAULT_DIR", "/tmp/vault")

        settings = HighlightSettings(_env_file=None)

        assert settings.max_cache_size == 25
        assert settings.performance_threshold_ms == 12.5
        assert settings.db_path == "/tmp/comments.db"
        assert settings.vault_dir == "/tmp/vault"

    def test_inline_rules_are_split(self, monkeypatch):
        monkeypatch.setenv("HIGHLIGHT_EXCLUDE_PATTERNS", "private/;*.tmp.md")

        settings = HighlightSettings(_env_file=None)

        assert settings.exclude_patterns == "private/\n*.tmp.md"

    def test_exclude_file_replaces_patterns(self, monkeypatch, tmp_path):
        rules = tmp_path / "exclude.txt"
        rules.write_text("# drafts\ndrafts/\n", encoding="utf-8")
        monkeypatch.setenv("HIGHLIGHT_EXCLUDE_PATTERNS", "ignored/")
        monkeypatch.setenv("HIGHLIGHT_EXCLUDE_FILE", str(rules))

        settings = HighlightSettings(_env_file=None)

        assert settings.exclude_patterns == "# drafts\ndrafts/\n"

    def test_missing_exclude_file_keeps_patterns(self, monkeypatch, tmp_path, caplog):
        monkeypatch.setenv("HIGHLIGHT_EXCLUDE_PATTERNS", "private/")
        monkeypatch.setenv("HIGHLIGHT_EXCLUDE_FILE", str(tmp_path / "missing.txt"))

        settings = HighlightSettings(_env_file=None)

        assert settings.exclude_patterns == "private/"
        assert "Could not read exclude file" in caplog.text

    @pytest.mark.parametrize(
        "name, value",
        [
            ("HIGHLIGHT_MAX_CACHE_SIZE", "abc"),
            ("HIGHLIGHT_MAX_CACHE_SIZE", "0"),
            ("HIGHLIGHT_PERFORMANCE_THRESHOLD_MS", "fast"),
        ],
    )
    def test_invalid_values_are_rejected(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ValidationError):
            HighlightSettings(_env_file=None)


class TestGetSettings:
    def test_cached(self):
        assert config.get_settings() is config.get_settings()

    def test_invalid_environment_fails_on_first_use(self, monkeypatch):
        monkeypatch.setenv("HIGHLIGHT_MAX_CACHE_SIZE", "abc")

        with pytest.raises(ValidationError):
            config.get_settings()
