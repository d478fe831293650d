"""Realtime message feed over Redis pub/sub."""

import asyncio
from dataclasses import dataclass, field

import redis.asyncio as redis
import structlog
from pydantic import ValidationError
from redis.asyncio.client import PubSub
from redis.exceptions import RedisError

from chat_sync.core.settings import SyncConfig
from chat_sync.schemas.chat_schema import Message
from chat_sync.services.protocols import InsertCallback

logger = structlog.get_logger()


@dataclass
class RedisSubscription:
    """Open subscription to one chat's insert channel."""

    chat_id: str
    channel: str
    pubsub: PubSub
    stopping: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    task: asyncio.Task[None] | None = field(default=None, repr=False)


class RedisRealtimeBridge:
    """Publishes committed message rows and fans them out to subscribers.

    Each subscription owns a dedicated pub/sub connection and a pump task
    that parses payloads and feeds them to the callback one at a time. The
    pump polls with ``poll_interval`` and checks its stop flag between
    reads, so teardown never depends on cancelling a blocked read.
    """

    def __init__(
        self,
        client: redis.Redis,  # type: ignore[type-arg]
        config: SyncConfig | None = None,
        *,
        poll_interval: float = 0.1,
        stop_timeout: float = 2.0,
    ) -> None:
        self._client = client
        self._config = config or SyncConfig()
        self._poll_interval = poll_interval
        self._stop_timeout = stop_timeout

    async def publish(self, message: Message) -> None:
        """Announce a committed row. Failures never undo the insert."""
        channel = self._config.channel_for(message.chat_id)
        try:
            await self._client.publish(channel, message.model_dump_json())
        except RedisError:
            logger.exception(
                "Failed to publish message insert",
                chat_id=message.chat_id,
                message_id=message.id,
            )

    async def subscribe(
        self, chat_id: str, on_insert: InsertCallback
    ) -> RedisSubscription:
        channel = self._config.channel_for(chat_id)
        pubsub = self._client.pubsub(ignore_subscribe_messages=True)
        await pubsub.subscribe(channel)
        subscription = RedisSubscription(chat_id=chat_id, channel=channel, pubsub=pubsub)
        subscription.task = asyncio.create_task(
            self._pump(subscription, on_insert),
            name=f"realtime:{channel}",
        )
        logger.info("Subscription opened", chat_id=chat_id, channel=channel)
        return subscription

    async def unsubscribe(self, handle: RedisSubscription) -> None:
        """Stop the pump and release the pub/sub connection.

        Never raises: a feed that already died is logged, and a pump that
        does not stop within ``stop_timeout`` is cancelled and left behind.
        """
        task, handle.task = handle.task, None
        handle.stopping.set()
        if task is not None:
            await self._reap(handle, task)
        try:
            await handle.pubsub.unsubscribe(handle.channel)
            await handle.pubsub.aclose()
        except RedisError:
            logger.exception("Failed to close subscription", chat_id=handle.chat_id)
        logger.info("Subscription closed", chat_id=handle.chat_id)

    async def _reap(self, handle: RedisSubscription, task: asyncio.Task[None]) -> None:
        done, _ = await asyncio.wait({task}, timeout=self._stop_timeout)
        if not done:
            logger.warning(
                "Subscription pump did not stop in time",
                chat_id=handle.chat_id,
                timeout=self._stop_timeout,
            )
            task.cancel()
            return
        if not task.cancelled() and (exc := task.exception()) is not None:
            logger.error(
                "Subscription pump crashed",
                chat_id=handle.chat_id,
                exc_info=exc,
            )

    async def _pump(
        self, subscription: RedisSubscription, on_insert: InsertCallback
    ) -> None:
        pubsub = subscription.pubsub
        while not subscription.stopping.is_set():
            try:
                item = await pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=self._poll_interval
                )
            except RedisError:
                logger.exception("Subscription feed lost", chat_id=subscription.chat_id)
                return
            if item is None or item.get("type") != "message":
                continue
            try:
                message = Message.model_validate_json(item["data"])
            except ValidationError:
                logger.warning(
                    "Dropped malformed push payload", chat_id=subscription.chat_id
                )
                continue
            try:
                result = on_insert(message)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception(
                    "Push callback failed",
                    chat_id=subscription.chat_id,
                    message_id=message.id,
                )
