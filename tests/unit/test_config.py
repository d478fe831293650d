"""Tests for domain-specific configuration."""

import pytest
from pydantic import SecretStr, ValidationError

from chat_sync.core.config import Settings
from chat_sync.core.settings import (
    AppConfig,
    DatabaseConfig,
    LLMConfig,
    RedisConfig,
    SyncConfig,
)
from chat_sync.core.settings.sync_config import DEFAULT_FALLBACK_REPLY


class TestLLMConfig:
    """LLMConfig frozen immutability tests."""

    def test_frozen_immutability(self) -> None:
        config = LLMConfig(
            provider="openai",
            openai_api_key=SecretStr("key"),
            openai_model="gpt-4o-mini",
            anthropic_api_key=SecretStr(""),
            anthropic_model="claude-sonnet-4-20250514",
            temperature=0.7,
        )
        with pytest.raises(ValidationError):
            config.provider = "anthropic"  # type: ignore[misc]


class TestAppConfig:
    def test_is_development(self) -> None:
        config = AppConfig(name="app", env="development", debug=True)
        assert config.is_development is True
        assert config.is_production is False

    def test_is_production(self) -> None:
        config = AppConfig(name="app", env="production", debug=False)
        assert config.is_production is True


class TestDatabaseConfig:
    """DatabaseConfig URL handling."""

    def test_mysql_gets_charset(self) -> None:
        config = DatabaseConfig(url=SecretStr("mysql+aiomysql://u:p@db/chat"))
        assert config.async_url == "mysql+aiomysql://u:p@db/chat?charset=utf8mb4"
        assert config.is_sqlite is False

    def test_mysql_with_query_untouched(self) -> None:
        url = "mysql+aiomysql://u:p@db/chat?charset=latin1"
        assert DatabaseConfig(url=SecretStr(url)).async_url == url

    def test_sqlite_untouched(self) -> None:
        config = DatabaseConfig(url=SecretStr("sqlite+aiosqlite:///./chat.db"))
        assert config.async_url == "sqlite+aiosqlite:///./chat.db"
        assert config.is_sqlite is True


class TestSyncConfig:
    def test_defaults(self) -> None:
        config = SyncConfig()
        assert config.page_size == 20
        assert config.fallback_reply == DEFAULT_FALLBACK_REPLY

    def test_channel_for(self) -> None:
        assert SyncConfig(channel_prefix="inserts").channel_for("c1") == "inserts:c1"

    def test_frozen_immutability(self) -> None:
        config = SyncConfig()
        with pytest.raises(ValidationError):
            config.page_size = 5  # type: ignore[misc]


class TestSettingsDomainProperties:
    """Settings domain property access tests."""

    def test_llm_property(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LLM_PROVIDER", "anthropic")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-anthropic-key")
        monkeypatch.setenv("LLM_TEMPERATURE", "0.2")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.llm.provider == "anthropic"
        assert s.llm.anthropic_api_key.get_secret_value() == "test-anthropic-key"
        assert s.llm.temperature == 0.2

    def test_sync_property(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MESSAGE_PAGE_SIZE", "50")
        monkeypatch.setenv("FALLBACK_REPLY", "Sorry!")
        monkeypatch.setenv("REALTIME_CHANNEL_PREFIX", "rows")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.sync.page_size == 50
        assert s.sync.fallback_reply == "Sorry!"
        assert s.sync.channel_for("x") == "rows:x"

    def test_page_size_bounds(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MESSAGE_PAGE_SIZE", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("DATABASE_URL", "REDIS_URL", "APP_ENV", "MESSAGE_PAGE_SIZE"):
            monkeypatch.delenv(name, raising=False)
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.database.is_sqlite is True
        assert s.redis == RedisConfig(url="redis://localhost:6379/0")
        assert s.sync.page_size == 20
        assert s.is_development is True
