"""Tests for codepoints.settings."""
from __future__ import annotations

import logging
from pathlib import Path

import pytest

from codepoints.settings import (
    DEFAULT_DB_PATH,
    DEFAULT_PARSE_STRING_MAXLENGTH,
    Settings,
    configure_logging,
)


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings.from_env({})
        assert settings.db_path == DEFAULT_DB_PATH
        assert settings.parse_string_maxlength == DEFAULT_PARSE_STRING_MAXLENGTH
        assert settings.log_level == "INFO"

    def test_overrides(self) -> None:
        settings = Settings.from_env(
            {
                "CODEPOINTS_DB": "/tmp/cp.duckdb",
                "CODEPOINTS_PARSE_STRING_MAXLENGTH": "64",
                "CODEPOINTS_LOG_LEVEL": "debug",
            }
        )
        assert settings.db_path == Path("/tmp/cp.duckdb")
        assert settings.parse_string_maxlength == 64
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("raw", ["abc", "0", "-3", "  "])
    def test_invalid_maxlength_falls_back(self, raw: str) -> None:
        settings = Settings.from_env({"CODEPOINTS_PARSE_STRING_MAXLENGTH": raw})
        assert settings.parse_string_maxlength == DEFAULT_PARSE_STRING_MAXLENGTH

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CODEPOINTS_DB", "elsewhere.duckdb")
        assert Settings.from_env().db_path == Path("elsewhere.duckdb")


class TestConfigureLogging:
    def test_verbose_sets_debug(self, monkeypatch: pytest.MonkeyPatch) -> None:
        root = logging.getLogger()
        monkeypatch.setattr(root, "handlers", [])
        monkeypatch.setattr(root, "level", root.level)
        configure_logging("WARNING", verbose=True)
        assert root.level == logging.DEBUG
