"""Chat database model."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.dialects import mysql
from sqlalchemy.orm import Mapped, mapped_column

from chat_sync.core.database import Base


def utc_now() -> datetime:
    return datetime.now(UTC)


# Microsecond precision on MySQL too; created_at is always set client-side.
Timestamp = DateTime(timezone=True).with_variant(mysql.DATETIME(fsp=6), "mysql")


class ChatRecord(Base):
    """Chat owned by a single user; messages reference it by id."""

    __tablename__ = "chats"
    __table_args__ = (Index("ix_chats_user_id_created_at", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        Timestamp, default=utc_now
    )
