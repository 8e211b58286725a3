"""Realtime subscription to message inserts of one conversation."""

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Protocol
from uuid import UUID

import redis.asyncio as aioredis
import structlog
from pydantic import BaseModel, ValidationError
from redis.exceptions import RedisError

from healthnet.messaging.config import get_client_settings

logger = structlog.get_logger(__name__)

SubscribedCallback = Callable[[], Awaitable[None]]


class InsertEvent(BaseModel):
    """Payload published after a message row is inserted."""

    id: UUID
    conversation_id: UUID
    sender_id: UUID


class RealtimeChannel(Protocol):
    """Source of raw payloads published on a named channel."""

    def listen(self, channel: str, on_subscribed: SubscribedCallback) -> AsyncIterator[str]:
        """
        Subscribe to ``channel`` and yield payloads until the connection ends.

        ``on_subscribed`` is awaited once the subscription is in place.
        Connection failures are raised as ``RedisError`` or ``OSError``.
        """
        ...


class RedisChannel:
    """``RealtimeChannel`` over Redis pub/sub."""

    def __init__(self, url: str | None = None, client: aioredis.Redis | None = None):
        self.url = url or get_client_settings().redis_url
        self._client = client

    async def listen(self, channel: str, on_subscribed: SubscribedCallback) -> AsyncIterator[str]:
        client = self._client or aioredis.from_url(self.url, decode_responses=True)
        pubsub = client.pubsub()
        try:
            await pubsub.subscribe(channel)
            await on_subscribed()
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                data = message["data"]
                yield data.decode() if isinstance(data, bytes) else data
        finally:
            await pubsub.aclose()
            if self._client is None:
                await client.aclose()


def channel_name(conversation_id: UUID, prefix: str | None = None) -> str:
    return f"{prefix or get_client_settings().channel_prefix}:{conversation_id}"


class RealtimeSubscription:
    """
    One live subscription to the inserts of a single conversation.

    The subscription runs as a background task from ``start()`` until
    ``close()``; it is also an async context manager. When the connection is
    lost it reconnects with exponential backoff, and every successful
    resubscribe after the first calls ``on_reconnect`` so the owner can
    re-fetch history and catch up on anything published meanwhile.
    """

    def __init__(
        self,
        channel: RealtimeChannel,
        conversation_id: UUID,
        on_insert: Callable[[InsertEvent], Awaitable[None]],
        on_reconnect: Callable[[], Awaitable[None]] | None = None,
        *,
        channel_prefix: str | None = None,
        initial_delay: float | None = None,
        max_delay: float | None = None,
    ):
        settings = get_client_settings()
        self.channel = channel
        self.conversation_id = conversation_id
        self.channel_name = channel_name(conversation_id, channel_prefix)
        self.on_insert = on_insert
        self.on_reconnect = on_reconnect
        self.initial_delay = settings.reconnect_initial_delay if initial_delay is None else initial_delay
        self.max_delay = settings.reconnect_max_delay if max_delay is None else max_delay
        self.connections = 0
        self._subscribed = asyncio.Event()
        self._task: asyncio.Task | None = None
        self._closed = False

    async def __aenter__(self) -> "RealtimeSubscription":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._closed:
            raise RuntimeError("Subscription is closed")
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name=f"realtime:{self.conversation_id}")

    async def wait_subscribed(self) -> None:
        """Wait until the channel subscription is in place."""
        await self._subscribed.wait()

    async def close(self) -> None:
        """Stop listening. Safe to call more than once."""
        self._closed = True
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("realtime_unsubscribed", conversation_id=str(self.conversation_id))

    async def _on_subscribed(self) -> None:
        self.connections += 1
        self._subscribed.set()
        logger.info(
            "realtime_subscribed",
            conversation_id=str(self.conversation_id),
            connections=self.connections,
        )
        if self.connections > 1 and self.on_reconnect is not None:
            await self.on_reconnect()

    async def _run(self) -> None:
        delay = self.initial_delay
        while not self._closed:
            connections_before = self.connections
            try:
                async for payload in self.channel.listen(self.channel_name, self._on_subscribed):
                    await self._dispatch(payload)
            except (RedisError, OSError) as e:
                logger.warning(
                    "realtime_connection_lost",
                    conversation_id=str(self.conversation_id),
                    error=str(e),
                    retry_in=delay,
                )
            self._subscribed.clear()
            if self._closed:
                break
            if self.connections > connections_before:
                delay = self.initial_delay
            await asyncio.sleep(delay)
            delay = min(delay * 2, self.max_delay)

    async def _dispatch(self, payload: str) -> None:
        try:
            event = InsertEvent.model_validate(json.loads(payload))
        except (ValueError, ValidationError) as e:
            logger.warning("realtime_event_invalid", payload=payload, error=str(e))
            return
        if event.conversation_id != self.conversation_id:
            return
        try:
            await self.on_insert(event)
        except Exception:
            # One bad row must not end the subscription
            logger.exception(
                "realtime_event_failed",
                conversation_id=str(self.conversation_id),
                message_id=str(event.id),
            )
