"""Chat list of the signed-in user."""

from datetime import UTC, datetime

import structlog

from chat_sync.schemas.chat_schema import Chat
from chat_sync.services.protocols import PersistenceClient

logger = structlog.get_logger()

TITLE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def default_title(now: datetime | None = None) -> str:
    """Title for a new chat, derived from its creation time."""
    moment = now or datetime.now(UTC)
    return f"Chat {moment.strftime(TITLE_TIME_FORMAT)}"


class ChatSessionStore:
    """Caches the user's chats, newest first. Single writer, no push feed."""

    def __init__(self, persistence: PersistenceClient, user_id: str) -> None:
        self._persistence = persistence
        self._user_id = user_id
        self._chats: list[Chat] = []

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def chats(self) -> tuple[Chat, ...]:
        return tuple(self._chats)

    async def list(self) -> tuple[Chat, ...]:
        """Refresh the cached list from the store."""
        self._chats = list(await self._persistence.fetch_chats(self._user_id))
        logger.info("Chats loaded", user_id=self._user_id, count=len(self._chats))
        return self.chats

    async def create(self) -> str:
        """Persist a new chat with a default title and return its id."""
        chat = await self._persistence.insert_chat(self._user_id, default_title())
        self._chats.insert(0, chat)
        logger.info("Chat created", user_id=self._user_id, chat_id=chat.id)
        return chat.id

    def clear(self) -> None:
        self._chats = []
