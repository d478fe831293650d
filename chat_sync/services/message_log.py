"""In-memory message log for one chat: unique by id, sorted by created_at."""

from bisect import bisect_right
from collections.abc import Iterable, Iterator
from datetime import datetime

from chat_sync.schemas.chat_schema import Message


def _created_at(message: Message) -> datetime:
    return message.created_at


class MessageLog:
    """Append-only ordered view of a chat's messages.

    Every writer (initial load, pagination, sends, pushes) goes through
    :meth:`merge`, so uniqueness and ordering are enforced in one place.
    Entries with equal ``created_at`` keep their arrival order: a new entry
    is placed after every existing entry with the same timestamp.
    """

    def __init__(self, chat_id: str) -> None:
        self.chat_id = chat_id
        self._entries: list[Message] = []
        self._ids: set[str] = set()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._entries)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._ids

    @property
    def oldest_timestamp(self) -> datetime | None:
        return self._entries[0].created_at if self._entries else None

    @property
    def newest_timestamp(self) -> datetime | None:
        return self._entries[-1].created_at if self._entries else None

    def snapshot(self) -> tuple[Message, ...]:
        return tuple(self._entries)

    def merge(self, message: Message) -> bool:
        """Insert ``message`` at its sorted position.

        Returns False when the message belongs to another chat or its id is
        already present; the log is left untouched in both cases.
        """
        if message.chat_id != self.chat_id or message.id in self._ids:
            return False
        index = bisect_right(self._entries, message.created_at, key=_created_at)
        self._entries.insert(index, message)
        self._ids.add(message.id)
        return True

    def merge_many(self, messages: Iterable[Message]) -> list[Message]:
        """Merge ``messages`` in iteration order; return the ones that were new."""
        return [message for message in messages if self.merge(message)]
