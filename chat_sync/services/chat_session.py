"""Per-user session context tying the chat list to the sync engine."""

from chat_sync.schemas.chat_schema import Chat, Message, SendResult
from chat_sync.services.session_store import ChatSessionStore
from chat_sync.services.sync_engine import ConversationSyncEngine


class ChatSession:
    """Everything a signed-in client holds: its chats and the open conversation.

    Instances are independent of each other, so several sessions (or tests)
    can run side by side in one process.
    """

    def __init__(self, store: ChatSessionStore, engine: ConversationSyncEngine) -> None:
        self.store = store
        self.engine = engine

    @property
    def user_id(self) -> str:
        return self.store.user_id

    @property
    def chats(self) -> tuple[Chat, ...]:
        return self.store.chats

    @property
    def messages(self) -> tuple[Message, ...]:
        return self.engine.messages

    async def open(self) -> tuple[Chat, ...]:
        """Load the user's chat list after sign-in."""
        return await self.store.list()

    async def new_chat(self) -> Chat | None:
        """Create a chat and make it the current conversation."""
        chat_id = await self.store.create()
        return await self.engine.select_chat(chat_id)

    async def select_chat(self, chat_id: str) -> Chat | None:
        return await self.engine.select_chat(chat_id)

    async def send(self, content: str) -> SendResult:
        return await self.engine.send(content)

    async def load_more_messages(self) -> list[Message]:
        return await self.engine.load_more_messages()

    async def close(self) -> None:
        """Sign-out: drop the conversation and forget the chat list."""
        await self.engine.close()
        self.store.clear()
