"""
tests/test_config.py -- Settings validation.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import DEFAULT_API_URL, Settings


def test_defaults(monkeypatch) -> None:
    monkeypatch.delenv("API_URL", raising=False)
    monkeypatch.delenv("API_TIMEOUT", raising=False)
    settings = Settings(_env_file=None)
    assert settings.api_url == DEFAULT_API_URL
    assert settings.api_timeout is None
    assert settings.storage_url == ""


def test_trailing_slash_is_stripped(monkeypatch) -> None:
    monkeypatch.setenv("API_URL", "https://api.pawconnect.org.np/api/")
    assert Settings(_env_file=None).api_url == "https://api.pawconnect.org.np/api"


def test_non_http_url_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("API_URL", "ftp://example.org")
    with pytest.raises(ValidationError, match="API_URL"):
        Settings(_env_file=None)


def test_timeout_must_be_positive(monkeypatch) -> None:
    monkeypatch.setenv("API_TIMEOUT", "0")
    with pytest.raises(ValidationError, match="API_TIMEOUT"):
        Settings(_env_file=None)


def test_timeout_from_env(monkeypatch) -> None:
    monkeypatch.setenv("API_TIMEOUT", "2.5")
    assert Settings(_env_file=None).api_timeout == 2.5


def test_default_hosts_are_local_only(monkeypatch) -> None:
    monkeypatch.delenv("ALLOWED_HOSTS", raising=False)
    assert Settings(_env_file=None).allowed_hosts == ["localhost", "127.0.0.1", "*.localhost"]


def test_allowed_hosts_from_env(monkeypatch) -> None:
    monkeypatch.setenv("ALLOWED_HOSTS", '["pawconnect.local"]')
    assert Settings(_env_file=None).allowed_hosts == ["pawconnect.local"]
