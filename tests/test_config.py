"""Tests for configuration defaults, env overrides and the log formatter."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from csv_to_json.config import Settings
from csv_to_json.logging import _JsonFormatter


def test_default_settings():
    settings = Settings()
    assert settings.upload_dir == Path("uploaded")
    assert settings.log_level == "INFO"
    assert settings.log_json is False
    assert settings.port == 8000


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("CSV_TO_JSON_UPLOAD_DIR", str(tmp_path))
    monkeypatch.setenv("CSV_TO_JSON_LOG_JSON", "true")
    monkeypatch.setenv("CSV_TO_JSON_PORT", "9001")
    settings = Settings()
    assert settings.upload_dir == tmp_path
    assert settings.log_json is True
    assert settings.port == 9001


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("csv_to_json.storage", logging.INFO, __file__, 1, "stored %s", ("a.csv",), None)
    record.filename_stored = "a.csv"
    payload = json.loads(_JsonFormatter().format(record))
    assert payload["level"] == "INFO"
    assert payload["logger"] == "csv_to_json.storage"
    assert payload["message"] == "stored a.csv"
    assert payload["filename_stored"] == "a.csv"
    assert "args" not in payload
