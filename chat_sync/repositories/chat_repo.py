"""Chat repository for chat and message database operations."""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import structlog
from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chat_sync.core.exceptions import StorageError
from chat_sync.models.chat import ChatRecord
from chat_sync.models.message import MessageRecord
from chat_sync.schemas.chat_schema import Chat, Message, Sender
from chat_sync.services.protocols import MessagePublisher, SortOrder

logger = structlog.get_logger()


class ChatRepository:
    """Encapsulates chat and message queries behind the persistence contract.

    Each call runs in its own session so a long-lived sync engine never holds
    a transaction open across user turns. Committed message inserts are
    handed to ``publisher`` so subscribed clients see them on the push feed.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        publisher: MessagePublisher | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._publisher = publisher

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("Storage operation failed", operation=operation)
                raise StorageError(f"{operation} failed: {exc}") from exc

    async def fetch_chat(self, chat_id: str) -> Chat | None:
        """Find a chat by id."""
        async with self._session("fetch_chat") as session:
            result = await session.execute(
                select(ChatRecord).where(ChatRecord.id == chat_id)
            )
            record = result.scalar_one_or_none()
        return Chat.model_validate(record) if record is not None else None

    async def fetch_chats(self, user_id: str) -> list[Chat]:
        """All chats owned by a user, newest first."""
        async with self._session("fetch_chats") as session:
            result = await session.execute(
                select(ChatRecord)
                .where(ChatRecord.user_id == user_id)
                .order_by(ChatRecord.created_at.desc(), ChatRecord.id.desc())
            )
            records = list(result.scalars().all())
        return [Chat.model_validate(r) for r in records]

    async def insert_chat(self, user_id: str, title: str) -> Chat:
        """Create a chat; the store assigns id and created_at."""
        async with self._session("insert_chat") as session:
            record = ChatRecord(id=str(uuid.uuid4()), user_id=user_id, title=title)
            session.add(record)
            await session.commit()
            await session.refresh(record)
        return Chat.model_validate(record)

    async def fetch_messages(
        self,
        chat_id: str,
        *,
        limit: int,
        order: SortOrder = "asc",
        before: datetime | None = None,
        before_id: str | None = None,
    ) -> list[Message]:
        """Fetch up to ``limit`` messages of a chat ordered by (created_at, id).

        ``before`` and ``before_id`` form an exclusive keyset cursor: rows
        strictly older than ``before``, plus rows at exactly ``before`` whose
        id sorts below ``before_id``. Without ``before_id`` the bound is
        timestamp only.
        """
        stmt = select(MessageRecord).where(MessageRecord.chat_id == chat_id)
        if before is not None:
            bound = before.astimezone(UTC)
            if before_id is None:
                stmt = stmt.where(MessageRecord.created_at < bound)
            else:
                stmt = stmt.where(
                    or_(
                        MessageRecord.created_at < bound,
                        and_(
                            MessageRecord.created_at == bound,
                            MessageRecord.id < before_id,
                        ),
                    )
                )
        if order == "desc":
            stmt = stmt.order_by(
                MessageRecord.created_at.desc(), MessageRecord.id.desc()
            )
        else:
            stmt = stmt.order_by(MessageRecord.created_at.asc(), MessageRecord.id.asc())
        stmt = stmt.limit(limit)

        async with self._session("fetch_messages") as session:
            result = await session.execute(stmt)
            records = list(result.scalars().all())
        return [Message.model_validate(r) for r in records]

    async def insert_message(self, chat_id: str, content: str, sender: Sender) -> Message:
        """Persist a message and announce it on the insert feed."""
        async with self._session("insert_message") as session:
            record = MessageRecord(
                id=str(uuid.uuid4()),
                chat_id=chat_id,
                content=content,
                sender=sender,
            )
            session.add(record)
            await session.commit()
            await session.refresh(record)
        message = Message.model_validate(record)

        if self._publisher is not None:
            await self._publisher.publish(message)
        return message
