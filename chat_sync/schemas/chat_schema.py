"""Chat and message value objects shared by the engine and its collaborators."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

Sender = Literal["user", "ai"]


def _as_utc(value: datetime) -> datetime:
    # SQLite and MySQL hand back naive datetimes; stored values are UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Chat(BaseModel):
    """Chat metadata row."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    user_id: str
    title: str
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _normalize_created_at(cls, value: datetime) -> datetime:
        return _as_utc(value)


class Message(BaseModel):
    """Message row as assigned by the store (id and created_at are server-side)."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    chat_id: str
    content: str
    sender: Sender
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _normalize_created_at(cls, value: datetime) -> datetime:
        return _as_utc(value)


class SendResult(BaseModel):
    """Outcome of one user turn.

    ``ai_message`` is None only when persisting the ai reply failed; the user
    message stands alone in that case.
    """

    model_config = ConfigDict(frozen=True)

    user_message: Message
    ai_message: Message | None = None
    used_fallback: bool = False
