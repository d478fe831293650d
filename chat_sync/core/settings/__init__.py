"""Domain-specific configuration models."""

from chat_sync.core.settings.app_config import AppConfig
from chat_sync.core.settings.database_config import DatabaseConfig
from chat_sync.core.settings.llm_config import LLMConfig
from chat_sync.core.settings.redis_config import RedisConfig
from chat_sync.core.settings.sync_config import SyncConfig

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "LLMConfig",
    "RedisConfig",
    "SyncConfig",
]
