"""Configuration and logging setup tests."""

import json
import logging

import pytest
from pydantic import ValidationError

from awards.config import Settings
from awards.logging_config import JsonFormatter


def test_missing_required_settings_refuse_to_load(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DB_URL", raising=False)
    monkeypatch.delenv("SESSION_SECRET", raising=False)

    with pytest.raises(ValidationError):
        Settings()


def test_settings_from_environment(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DB_URL", "sqlite+aiosqlite:///nominations.db")
    monkeypatch.setenv("SESSION_SECRET", "s3cret")
    monkeypatch.setenv("SESSION_TTL_HOURS", "12")

    settings = Settings()

    assert settings.db.url == "sqlite+aiosqlite:///nominations.db"
    assert settings.session.secret.get_secret_value() == "s3cret"
    assert settings.session.ttl_hours == 12
    assert settings.session.cookie_secure is True
    assert "s3cret" not in repr(settings)


def test_json_formatter_includes_extras():
    record = logging.LogRecord("awards.test", logging.WARNING, __file__, 1, "blob left %s", ("behind",), None)
    record.orphaned_reference = "cv-1-2.pdf"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "blob left behind"
    assert payload["level"] == "WARNING"
    assert payload["orphaned_reference"] == "cv-1-2.pdf"
