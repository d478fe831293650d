"""Conversation synchronization engine.

Keeps the selected chat's message log consistent while three sources write
to it concurrently: the user's own sends, the realtime insert feed, and
backward pagination through older history. All of them funnel into
:class:`MessageLog.merge`, which is idempotent and order-independent, so the
final log does not depend on how those writers interleave.
"""

import asyncio
from collections.abc import Mapping
from datetime import datetime
from enum import StrEnum
from typing import Any

import structlog
from pydantic import ValidationError

from chat_sync.core.exceptions import (
    BusyError,
    ChatNotFoundError,
    GenerationError,
    InvalidStateError,
    StorageError,
)
from chat_sync.core.settings.sync_config import (
    DEFAULT_FALLBACK_REPLY,
    DEFAULT_PAGE_SIZE,
)
from chat_sync.schemas.chat_schema import Chat, Message, SendResult
from chat_sync.services.message_log import MessageLog
from chat_sync.services.protocols import (
    PersistenceClient,
    RealtimeBridge,
    ResponseGenerator,
    SubscriptionHandle,
)

logger = structlog.get_logger()


def _cursor_of(message: Message) -> tuple[datetime, str]:
    return message.created_at, message.id


class SyncState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"


class ConversationSyncEngine:
    """Owns the message log of the currently selected chat."""

    def __init__(
        self,
        persistence: PersistenceClient,
        bridge: RealtimeBridge,
        generator: ResponseGenerator,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        fallback_reply: str = DEFAULT_FALLBACK_REPLY,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self._persistence = persistence
        self._bridge = bridge
        self._generator = generator
        self._page_size = page_size
        self._fallback_reply = fallback_reply

        self._state = SyncState.IDLE
        self._chat: Chat | None = None
        self._log: MessageLog | None = None
        self._subscription: SubscriptionHandle | None = None
        # (created_at, id) of the oldest row reached by the initial load or
        # pagination. Pushed rows never move it.
        self._history_cursor: tuple[datetime, str] | None = None
        self._has_more_history = False
        # Bumped on every select/close; in-flight loads compare against it.
        self._selection = 0
        self._sending: set[str] = set()
        self._pagination_lock = asyncio.Lock()

    # --- Read side ---

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def current_chat(self) -> Chat | None:
        return self._chat

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the current log, oldest first."""
        return self._log.snapshot() if self._log is not None else ()

    @property
    def has_more_history(self) -> bool:
        return self._has_more_history

    @property
    def is_paginating(self) -> bool:
        return self._pagination_lock.locked()

    @property
    def is_sending(self) -> bool:
        return self._chat is not None and self._chat.id in self._sending

    # --- Chat selection ---

    async def select_chat(self, chat_id: str) -> Chat | None:
        """Switch to ``chat_id`` and load its most recent page.

        Returns the selected chat, or None when a later ``select_chat`` or
        ``close`` superseded this call before it finished.

        Raises:
            ChatNotFoundError: No chat with this id exists.
            StorageError: The store could not be reached.
        """
        self._selection += 1
        token = self._selection
        await self._release()
        if token != self._selection:
            return None

        self._state = SyncState.LOADING
        logger.info("Selecting chat", chat_id=chat_id)
        try:
            return await self._load(chat_id, token)
        except Exception:
            if token != self._selection:
                logger.warning(
                    "Discarded failure of superseded chat selection",
                    chat_id=chat_id,
                    exc_info=True,
                )
                return None
            await self._release()
            raise

    async def _load(self, chat_id: str, token: int) -> Chat | None:
        chat = await self._persistence.fetch_chat(chat_id)
        if token != self._selection:
            return None
        if chat is None:
            raise ChatNotFoundError(chat_id)

        # Install the log before subscribing so rows pushed while the first
        # page is in flight are merged rather than lost.
        log = MessageLog(chat_id)
        self._chat = chat
        self._log = log

        subscription = await self._bridge.subscribe(chat_id, self.merge_pushed_message)
        if token != self._selection:
            await self._bridge.unsubscribe(subscription)
            return None
        self._subscription = subscription

        page = await self._persistence.fetch_messages(
            chat_id, limit=self._page_size, order="desc"
        )
        if token != self._selection:
            return None

        log.merge_many(reversed(page))
        self._history_cursor = _cursor_of(page[-1]) if page else None
        self._has_more_history = len(page) >= self._page_size
        self._state = SyncState.READY
        logger.info(
            "Chat selected",
            chat_id=chat_id,
            message_count=len(log),
            has_more_history=self._has_more_history,
        )
        return chat

    async def close(self) -> None:
        """Drop the current chat, its subscription and any in-flight loads."""
        self._selection += 1
        await self._release()

    async def _release(self) -> None:
        subscription, self._subscription = self._subscription, None
        self._state = SyncState.IDLE
        self._chat = None
        self._log = None
        self._history_cursor = None
        self._has_more_history = False
        if subscription is not None:
            await self._bridge.unsubscribe(subscription)

    # --- Merge ---

    def merge_pushed_message(self, row: Message | Mapping[str, Any]) -> bool:
        """Merge a row delivered by the realtime feed.

        Returns True if the row was new. Malformed rows, duplicates and rows
        of a chat that is no longer selected are dropped.
        """
        if not isinstance(row, Message):
            try:
                row = Message.model_validate(row)
            except ValidationError:
                logger.warning("Dropped malformed push payload")
                return False
        return self._merge_current(row)

    def _merge_current(self, message: Message) -> bool:
        log = self._log
        if log is None or log.chat_id != message.chat_id:
            logger.debug(
                "Ignored message for inactive chat",
                chat_id=message.chat_id,
                message_id=message.id,
            )
            return False
        merged = log.merge(message)
        if not merged:
            logger.debug("Ignored duplicate message", message_id=message.id)
        return merged

    # --- Send pipeline ---

    async def send(self, content: str) -> SendResult:
        """Persist a user message, then generate and persist the ai reply.

        Only the user message persistence is serialized per chat; reply
        generation of an earlier turn does not block the next send. A failed
        generation is replaced by the fallback reply.

        Raises:
            InvalidStateError: No chat is ready, or ``content`` is blank.
            BusyError: A user message for this chat is still being stored.
            StorageError: The user message could not be stored.
        """
        text = content.strip()
        if self._state is not SyncState.READY or self._chat is None:
            raise InvalidStateError("No chat is ready for sending")
        if not text:
            raise InvalidStateError("Message content is empty")

        chat_id = self._chat.id
        if chat_id in self._sending:
            raise BusyError()

        self._sending.add(chat_id)
        try:
            user_message = await self._persistence.insert_message(chat_id, text, "user")
        finally:
            self._sending.discard(chat_id)
        self._merge_current(user_message)

        ai_message, used_fallback = await self._reply(chat_id, text)
        return SendResult(
            user_message=user_message,
            ai_message=ai_message,
            used_fallback=used_fallback,
        )

    async def _reply(self, chat_id: str, prompt: str) -> tuple[Message | None, bool]:
        used_fallback = False
        try:
            reply = await self._generator.generate(prompt)
        except GenerationError as exc:
            logger.warning(
                "Generation failed, using fallback reply",
                chat_id=chat_id,
                error=exc.message,
            )
            reply = ""
        if not reply.strip():
            reply = self._fallback_reply
            used_fallback = True

        try:
            ai_message = await self._persistence.insert_message(chat_id, reply, "ai")
        except StorageError:
            logger.exception("Failed to persist ai reply", chat_id=chat_id)
            return None, used_fallback

        # Chat id is the turn's correlation: a reply that lands after a switch
        # only merges if its chat is current again.
        self._merge_current(ai_message)
        return ai_message, used_fallback

    # --- Pagination ---

    async def load_more_messages(self) -> list[Message]:
        """Prepend the next page of older history.

        Returns the messages that were added, oldest first. An empty list
        means there is no older history (or the chat changed meanwhile).

        Raises:
            InvalidStateError: No chat is ready.
            StorageError: The page could not be fetched; the log is unchanged.
        """
        if self._state is not SyncState.READY:
            raise InvalidStateError("No chat is ready for pagination")

        async with self._pagination_lock:
            log = self._log
            if self._state is not SyncState.READY or log is None:
                raise InvalidStateError("No chat is ready for pagination")
            before_id: str | None
            if self._history_cursor is not None:
                before, before_id = self._history_cursor
            elif (oldest := log.oldest_timestamp) is not None:
                # Nothing came from history yet; only sends and pushes are loaded.
                before, before_id = oldest, None
            else:
                return []

            page = await self._persistence.fetch_messages(
                log.chat_id,
                limit=self._page_size,
                order="desc",
                before=before,
                before_id=before_id,
            )
            if self._log is not log:
                logger.info("Discarded history page of deselected chat", chat_id=log.chat_id)
                return []
            if not page:
                self._has_more_history = False
                return []

            added = log.merge_many(reversed(page))
            self._history_cursor = _cursor_of(page[-1])
            self._has_more_history = len(page) >= self._page_size
            logger.info(
                "History page loaded",
                chat_id=log.chat_id,
                fetched=len(page),
                added=len(added),
                has_more_history=self._has_more_history,
            )
            return added
