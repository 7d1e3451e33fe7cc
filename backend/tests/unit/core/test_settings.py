"""Tests for Settings validation and derived lifetimes."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from tokengate.core.config import Environment, LogFormat, Settings, TokenStoreBackend


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestDefaults:
    def test_defaults(self, monkeypatch):
        for name in ("TOKENGATE_ENVIRONMENT", "TOKENGATE_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        s = _settings()

        assert s.ENVIRONMENT is Environment.LOCAL
        assert s.LOG_FORMAT is LogFormat.TEXT
        assert s.TOKEN_STORE_BACKEND is TokenStoreBackend.MEMORY
        assert s.request_token_ttl == timedelta(minutes=10)
        assert s.max_request_token_ttl == timedelta(hours=1)
        assert s.access_token_ttl == timedelta(days=30)

    def test_reads_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("TOKENGATE_REQUEST_TOKEN_TTL_SECONDS", "300")
        monkeypatch.setenv("TOKENGATE_LOG_FORMAT", "json")

        s = _settings()

        assert s.request_token_ttl == timedelta(minutes=5)
        assert s.LOG_FORMAT is LogFormat.JSON

    @pytest.mark.parametrize("value", [None, 0])
    def test_non_expiring_access_tokens(self, value):
        assert _settings(ACCESS_TOKEN_TTL_SECONDS=value).access_token_ttl is None


class TestValidation:
    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"REQUEST_TOKEN_TTL_SECONDS": 0}, "must be positive"),
            (
                {"REQUEST_TOKEN_TTL_SECONDS": 7200, "MAX_REQUEST_TOKEN_TTL_SECONDS": 3600},
                "cannot exceed MAX_REQUEST_TOKEN_TTL_SECONDS",
            ),
            ({"ACCESS_TOKEN_TTL_SECONDS": -1}, "cannot be negative"),
            ({"TOKEN_STORE_BACKEND": "sql"}, "DATABASE_URL is required"),
        ],
        ids=["zero-ttl", "ttl-over-max", "negative-access-ttl", "sql-without-url"],
    )
    def test_rejects_inconsistent_config(self, overrides, message):
        with pytest.raises(ValidationError, match=message):
            _settings(**overrides)

    def test_sql_with_url(self):
        s = _settings(TOKEN_STORE_BACKEND="sql", DATABASE_URL="sqlite+aiosqlite:///tokens.db")

        assert s.TOKEN_STORE_BACKEND is TokenStoreBackend.SQL

    def test_entropy_floor(self):
        with pytest.raises(ValidationError):
            _settings(TOKEN_BYTES=8)
