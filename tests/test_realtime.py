"""Tests for realtime publishing and the client subscription."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import redis

from healthnet.core.realtime import build_insert_event, message_channel, publish_message_inserted
from healthnet.messaging.realtime import InsertEvent, RealtimeSubscription, RedisChannel


def test_message_channel_is_scoped_to_conversation():
    conversation_id = uuid4()
    assert message_channel(conversation_id) == f"messages:{conversation_id}"


def test_publish_sends_insert_event_to_conversation_channel(mock_redis):
    message_id, conversation_id, sender_id = uuid4(), uuid4(), uuid4()

    receivers = publish_message_inserted(mock_redis, message_id, conversation_id, sender_id)

    assert receivers == 1
    channel, payload = mock_redis.publish.call_args.args
    assert channel == f"messages:{conversation_id}"
    event = json.loads(payload)
    assert event["event"] == "INSERT"
    assert event["table"] == "messages"
    assert event["id"] == str(message_id)
    assert event["sender_id"] == str(sender_id)


def test_publish_failure_does_not_raise(mock_redis):
    mock_redis.publish.side_effect = redis.ConnectionError("down")

    assert publish_message_inserted(mock_redis, uuid4(), uuid4(), uuid4()) == 0


def test_insert_event_parses_published_payload():
    message_id, conversation_id, sender_id = uuid4(), uuid4(), uuid4()
    event = InsertEvent.model_validate(
        json.loads(build_insert_event(message_id, conversation_id, sender_id))
    )
    assert (event.id, event.conversation_id, event.sender_id) == (
        message_id,
        conversation_id,
        sender_id,
    )


class ScriptedChannel:
    """Channel whose connections follow a script: a list of payloads, or an exception."""

    def __init__(self, script):
        self.script = list(script)
        self.attempts = 0
        self.idle = asyncio.Event()

    async def listen(self, channel, on_subscribed):
        self.attempts += 1
        step = self.script.pop(0) if self.script else None
        if isinstance(step, Exception):
            raise step
        await on_subscribed()
        for payload in step or []:
            yield payload
        if step is None:
            self.idle.set()
            await asyncio.Event().wait()


async def test_subscription_delivers_only_valid_events_for_its_conversation():
    conversation_id = uuid4()
    own = build_insert_event(uuid4(), conversation_id, uuid4())
    foreign = build_insert_event(uuid4(), uuid4(), uuid4())
    channel = ScriptedChannel([["not json", json.dumps({"id": "x"}), foreign, own], None])
    received = []

    async def on_insert(event: InsertEvent) -> None:
        received.append(event)

    async with RealtimeSubscription(channel, conversation_id, on_insert) as subscription:
        await asyncio.wait_for(channel.idle.wait(), timeout=2)
        assert subscription.active

    assert [e.conversation_id for e in received] == [conversation_id]
    assert subscription.active is False


async def test_failing_insert_handler_does_not_end_subscription():
    conversation_id = uuid4()
    first = build_insert_event(uuid4(), conversation_id, uuid4())
    second = build_insert_event(uuid4(), conversation_id, uuid4())
    channel = ScriptedChannel([[first, second], None])
    handled = []

    async def on_insert(event: InsertEvent) -> None:
        handled.append(event.id)
        if len(handled) == 1:
            raise ValueError("malformed message row")

    subscription = RealtimeSubscription(channel, conversation_id, on_insert)
    subscription.start()
    await asyncio.wait_for(channel.idle.wait(), timeout=2)

    assert len(handled) == 2
    assert subscription.active
    assert channel.attempts == 1
    # Closing does not re-raise the handler error
    await subscription.close()


async def test_subscription_reconnects_with_backoff_and_reports_reconnect():
    conversation_id = uuid4()
    channel = ScriptedChannel([[], OSError("refused"), OSError("refused"), None])
    reconnects = []
    sleeps = []
    real_sleep = asyncio.sleep

    async def fake_sleep(delay):
        sleeps.append(delay)
        await real_sleep(0)

    async def on_reconnect() -> None:
        reconnects.append(True)

    subscription = RealtimeSubscription(
        channel,
        conversation_id,
        on_insert=AsyncMock(),
        on_reconnect=on_reconnect,
        initial_delay=0.5,
        max_delay=30.0,
    )
    with pytest.MonkeyPatch.context() as mp:
        mp.setattr("healthnet.messaging.realtime.asyncio.sleep", fake_sleep)
        subscription.start()
        await asyncio.wait_for(channel.idle.wait(), timeout=2)

    await subscription.close()

    assert channel.attempts == 4
    assert sleeps == [0.5, 1.0, 2.0]
    assert subscription.connections == 2
    assert reconnects == [True]


async def test_closed_subscription_cannot_restart():
    subscription = RealtimeSubscription(ScriptedChannel([None]), uuid4(), on_insert=AsyncMock())
    await subscription.close()

    with pytest.raises(RuntimeError):
        subscription.start()


async def test_redis_channel_yields_message_payloads():
    pubsub = MagicMock()
    pubsub.subscribe = AsyncMock()
    pubsub.aclose = AsyncMock()

    async def listen():
        yield {"type": "subscribe", "data": 1}
        yield {"type": "message", "data": "payload-1"}
        yield {"type": "message", "data": b"payload-2"}

    pubsub.listen = listen
    redis_client = MagicMock()
    redis_client.pubsub.return_value = pubsub
    on_subscribed = AsyncMock()

    channel = RedisChannel(client=redis_client)
    payloads = [p async for p in channel.listen("messages:abc", on_subscribed)]

    assert payloads == ["payload-1", "payload-2"]
    pubsub.subscribe.assert_awaited_once_with("messages:abc")
    on_subscribed.assert_awaited_once()
    pubsub.aclose.assert_awaited_once()
