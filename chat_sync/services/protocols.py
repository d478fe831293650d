"""Collaborator contracts consumed by the conversation sync engine."""

from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any, Literal, Protocol

from chat_sync.schemas.chat_schema import Chat, Message, Sender

SortOrder = Literal["asc", "desc"]
InsertCallback = Callable[[Message], Any]


class PersistenceClient(Protocol):
    """CRUD access to chats and messages; the single source of truth."""

    async def fetch_chat(self, chat_id: str) -> Chat | None: ...

    async def fetch_messages(
        self,
        chat_id: str,
        *,
        limit: int,
        order: SortOrder = "asc",
        before: datetime | None = None,
        before_id: str | None = None,
    ) -> Sequence[Message]: ...

    async def insert_message(
        self, chat_id: str, content: str, sender: Sender
    ) -> Message: ...

    async def insert_chat(self, user_id: str, title: str) -> Chat: ...

    async def fetch_chats(self, user_id: str) -> Sequence[Chat]: ...


class SubscriptionHandle(Protocol):
    chat_id: str


class RealtimeBridge(Protocol):
    """Per-chat insert feed. Delivery is at-least-once and unordered."""

    async def subscribe(
        self, chat_id: str, on_insert: InsertCallback
    ) -> SubscriptionHandle: ...

    async def unsubscribe(self, handle: SubscriptionHandle) -> None: ...


class MessagePublisher(Protocol):
    """Emits committed message rows onto the insert feed."""

    async def publish(self, message: Message) -> None: ...


class ResponseGenerator(Protocol):
    """Turns prompt text into reply text or raises GenerationError."""

    async def generate(self, prompt: str) -> str: ...
