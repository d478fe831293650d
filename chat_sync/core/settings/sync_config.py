"""Conversation synchronization configuration."""

from pydantic import BaseModel

DEFAULT_PAGE_SIZE = 20
DEFAULT_FALLBACK_REPLY = (
    "I'm having trouble generating a response right now. Please try again later."
)


class SyncConfig(BaseModel, frozen=True):
    """Paging and reply policy for the conversation sync engine."""

    page_size: int = DEFAULT_PAGE_SIZE
    fallback_reply: str = DEFAULT_FALLBACK_REPLY
    channel_prefix: str = "messages"

    def channel_for(self, chat_id: str) -> str:
        """Realtime channel name carrying inserts for one chat."""
        return f"{self.channel_prefix}:{chat_id}"
