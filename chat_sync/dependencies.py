"""Factories wiring the sync engine to its concrete collaborators."""

from functools import lru_cache

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from chat_sync.core.config import settings
from chat_sync.core.database import create_engine, create_session_factory
from chat_sync.core.redis import get_redis
from chat_sync.repositories.chat_repo import ChatRepository
from chat_sync.services.chat_session import ChatSession
from chat_sync.services.realtime_bridge import RedisRealtimeBridge
from chat_sync.services.response_generator import LLMResponseGenerator
from chat_sync.services.session_store import ChatSessionStore
from chat_sync.services.sync_engine import ConversationSyncEngine


@lru_cache
def get_llm() -> BaseChatModel:
    """Get the LLM instance based on the configured provider."""
    llm_config = settings.llm
    match llm_config.provider:
        case "openai":
            return ChatOpenAI(
                model=llm_config.openai_model,
                api_key=llm_config.openai_api_key,
                temperature=llm_config.temperature,
            )
        case "anthropic":
            return ChatAnthropic(  # type: ignore[call-arg]
                model_name=llm_config.anthropic_model,
                api_key=llm_config.anthropic_api_key,
                temperature=llm_config.temperature,
            )
        case _:
            raise ValueError(f"Unsupported LLM provider: {llm_config.provider}")


@lru_cache
def get_engine() -> AsyncEngine:
    return create_engine(settings.database, echo=settings.app.debug)


@lru_cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return create_session_factory(get_engine())


def get_realtime_bridge() -> RedisRealtimeBridge:
    """Get a bridge backed by the active Redis client."""
    return RedisRealtimeBridge(get_redis(), settings.sync)


def get_chat_repository(bridge: RedisRealtimeBridge | None = None) -> ChatRepository:
    """Get a ChatRepository that announces inserts on ``bridge``."""
    return ChatRepository(get_session_factory(), publisher=bridge)


def get_response_generator() -> LLMResponseGenerator:
    return LLMResponseGenerator(get_llm())


def create_chat_session(user_id: str) -> ChatSession:
    """Assemble a fresh session for a signed-in user.

    Requires ``init_redis()`` to have run.
    """
    bridge = get_realtime_bridge()
    repo = get_chat_repository(bridge)
    engine = ConversationSyncEngine(
        repo,
        bridge,
        get_response_generator(),
        page_size=settings.sync.page_size,
        fallback_reply=settings.sync.fallback_reply,
    )
    return ChatSession(ChatSessionStore(repo, user_id), engine)
