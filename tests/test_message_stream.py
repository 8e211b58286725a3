"""Tests for the messaging client: resolver, stream controller, optimistic sends."""

import asyncio
import json
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from healthnet.messaging.errors import ClientError, ConversationUnavailable
from healthnet.messaging.realtime import channel_name
from healthnet.messaging.resolver import ConversationResolver
from healthnet.messaging.sending import SEND_FAILED_NOTICE
from healthnet.messaging.session import Session
from healthnet.messaging.state import ConfirmedMessage, PendingMessage
from healthnet.messaging.stream import MessageStreamController
from healthnet.schemas.messaging import ConversationSummary, MessageRecord
from healthnet.schemas.profiles import ProfileSummary


class FakeChannel:
    """In-memory pub/sub with controllable connection loss."""

    def __init__(self):
        self.queues: dict[str, list[asyncio.Queue]] = {}
        self.connects: list[str] = []

    async def listen(self, channel, on_subscribed):
        queue: asyncio.Queue = asyncio.Queue()
        self.queues.setdefault(channel, []).append(queue)
        self.connects.append(channel)
        try:
            await on_subscribed()
            while True:
                item = await queue.get()
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self.queues[channel].remove(queue)

    def listeners(self, channel: str) -> int:
        return len(self.queues.get(channel, []))

    def publish(self, channel: str, payload: str) -> None:
        for queue in list(self.queues.get(channel, [])):
            queue.put_nowait(payload)

    def drop(self, channel: str) -> None:
        for queue in list(self.queues.get(channel, [])):
            queue.put_nowait(ConnectionError("connection lost"))


class FakeBackend:
    """Server state shared by every fake client."""

    def __init__(self, channel: FakeChannel | None = None):
        self.channel = channel
        self.conversations: dict[UUID, dict] = {}
        self.pairs: dict[frozenset, UUID] = {}
        self.messages: dict[UUID, MessageRecord] = {}
        self.clock = datetime(2026, 1, 1, 9, 0, tzinfo=UTC)
        self.fail_resolve = False
        self.fail_sends = False
        self.fail_mark_read = False
        self.send_gate: asyncio.Event | None = None
        # Held after the row is stored and published, before the response
        self.respond_gate: asyncio.Event | None = None
        # Held after the history snapshot is taken
        self.history_gate: asyncio.Event | None = None
        self.send_calls = 0

    def tick(self) -> datetime:
        self.clock += timedelta(seconds=1)
        return self.clock

    def get_or_create(self, user_id: UUID, other_user_id: UUID) -> UUID:
        if user_id == other_user_id:
            raise ClientError("Cannot start a conversation with yourself", 400)
        key = frozenset((user_id, other_user_id))
        if key not in self.pairs:
            conversation_id = uuid4()
            user1_id, user2_id = sorted((user_id, other_user_id))
            now = self.tick()
            self.pairs[key] = conversation_id
            self.conversations[conversation_id] = {
                "id": conversation_id,
                "user1_id": user1_id,
                "user2_id": user2_id,
                "created_at": now,
                "updated_at": now,
            }
        return self.pairs[key]

    def insert_message(
        self, conversation_id: UUID, sender_id: UUID, content: str, publish: bool = True
    ) -> MessageRecord:
        content = content.strip()
        if not content:
            raise ClientError("Message content cannot be empty", 422)
        record = MessageRecord(
            id=uuid4(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            is_read=False,
            created_at=self.tick(),
        )
        self.messages[record.id] = record
        self.conversations[conversation_id]["updated_at"] = record.created_at
        if publish and self.channel is not None:
            self.channel.publish(
                channel_name(conversation_id),
                json.dumps(
                    {
                        "id": str(record.id),
                        "conversation_id": str(conversation_id),
                        "sender_id": str(sender_id),
                    }
                ),
            )
        return record

    def summary(self, conversation_id: UUID, user_id: UUID) -> ConversationSummary:
        row = self.conversations[conversation_id]
        other = row["user2_id"] if row["user1_id"] == user_id else row["user1_id"]
        unread = sum(
            1
            for m in self.messages.values()
            if m.conversation_id == conversation_id and m.sender_id != user_id and not m.is_read
        )
        return ConversationSummary(**row, other_user=ProfileSummary(id=other), unread_count=unread)

    def history(self, conversation_id: UUID) -> list[MessageRecord]:
        return sorted(
            (m for m in self.messages.values() if m.conversation_id == conversation_id),
            key=lambda m: (m.created_at, str(m.id)),
        )


class FakeClient:
    """Stands in for ``HealthNetClient`` for one signed-in user."""

    def __init__(self, backend: FakeBackend, user_id: UUID):
        self.backend = backend
        self.user_id = user_id

    async def list_conversations(self) -> list[ConversationSummary]:
        mine = [
            c["id"]
            for c in self.backend.conversations.values()
            if self.user_id in (c["user1_id"], c["user2_id"])
        ]
        summaries = [self.backend.summary(cid, self.user_id) for cid in mine]
        return sorted(summaries, key=lambda c: c.updated_at, reverse=True)

    async def get_or_create_conversation(self, other_user_id: UUID) -> ConversationSummary:
        if self.backend.fail_resolve:
            raise ClientError("Could not reach the server")
        conversation_id = self.backend.get_or_create(self.user_id, other_user_id)
        return self.backend.summary(conversation_id, self.user_id)

    async def list_messages(self, conversation_id: UUID) -> list[MessageRecord]:
        snapshot = self.backend.history(conversation_id)
        if self.backend.history_gate is not None:
            await self.backend.history_gate.wait()
        return snapshot

    async def get_message(self, message_id: UUID) -> MessageRecord:
        return self.backend.messages[message_id]

    async def send_message(self, conversation_id: UUID, content: str) -> MessageRecord:
        self.backend.send_calls += 1
        if self.backend.send_gate is not None:
            await self.backend.send_gate.wait()
        if self.backend.fail_sends:
            raise ClientError("Could not reach the server")
        record = self.backend.insert_message(conversation_id, self.user_id, content)
        if self.backend.respond_gate is not None:
            await self.backend.respond_gate.wait()
        return record

    async def mark_read(self, conversation_id: UUID) -> int:
        if self.backend.fail_mark_read:
            raise ClientError("Could not reach the server")
        updated = 0
        for message_id, m in list(self.backend.messages.items()):
            if m.conversation_id == conversation_id and m.sender_id != self.user_id and not m.is_read:
                self.backend.messages[message_id] = m.model_copy(update={"is_read": True})
                updated += 1
        return updated


async def eventually(predicate, timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def alice() -> UUID:
    return uuid4()


@pytest.fixture
def bob() -> UUID:
    return uuid4()


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def backend(channel) -> FakeBackend:
    return FakeBackend(channel)


def make_controller(backend: FakeBackend, user_id: UUID, channel=None) -> MessageStreamController:
    return MessageStreamController(
        FakeClient(backend, user_id),  # type: ignore[arg-type]
        Session(user_id, access_token="token"),
        channel=channel,
    )


# Conversation resolver


async def test_resolving_from_both_sides_yields_same_conversation(backend, alice, bob):
    from_alice = await ConversationResolver(FakeClient(backend, alice)).resolve(bob)
    from_bob = await ConversationResolver(FakeClient(backend, bob)).resolve(alice)
    again = await ConversationResolver(FakeClient(backend, alice)).resolve(bob)

    assert from_alice.id == from_bob.id == again.id
    assert len(backend.conversations) == 1


async def test_resolver_failure_raises_conversation_unavailable(backend, alice, bob):
    backend.fail_resolve = True

    with pytest.raises(ConversationUnavailable):
        await ConversationResolver(FakeClient(backend, alice)).resolve(bob)


async def test_open_conversation_failure_leaves_nothing_selected(backend, alice, bob):
    controller = make_controller(backend, alice)
    backend.fail_resolve = True

    result = await controller.open_conversation(bob)

    assert result is None
    assert controller.selected_conversation_id is None
    assert controller.messages == []
    assert controller.notice


# Sending


async def test_whitespace_only_send_is_refused(backend, alice, bob):
    controller = make_controller(backend, alice)
    await controller.open_conversation(bob)
    controller.sender.draft = "   \n\t "

    result = await controller.sender.send()

    assert result is None
    assert backend.send_calls == 0
    assert backend.messages == {}
    assert controller.messages == []


async def test_successful_send_leaves_one_confirmed_message(backend, alice, bob):
    controller = make_controller(backend, alice)
    await controller.open_conversation(bob)
    controller.sender.draft = "  Hello  "

    record = await controller.sender.send()

    assert record is not None
    assert controller.log.pending is None
    assert not any(isinstance(m, PendingMessage) for m in controller.messages)
    confirmed = [m for m in controller.messages if m.content == "Hello"]
    assert len(confirmed) == 1
    assert isinstance(confirmed[0], ConfirmedMessage)
    assert confirmed[0].id == record.id
    assert controller.sender.draft == ""


async def test_pending_message_shown_before_server_answers(backend, alice, bob):
    controller = make_controller(backend, alice)
    await controller.open_conversation(bob)
    backend.send_gate = asyncio.Event()
    controller.sender.draft = "Hello"

    task = asyncio.create_task(controller.sender.send())
    await eventually(lambda: controller.sender.sending)

    assert controller.sender.draft == ""
    assert isinstance(controller.messages[-1], PendingMessage)
    assert controller.messages[-1].content == "Hello"
    # A second submit while one is in flight is refused
    assert await controller.sender.send("Again") is None

    backend.send_gate.set()
    await task

    assert [m.content for m in controller.messages] == ["Hello"]
    assert backend.send_calls == 1


async def test_failed_send_rolls_back_and_restores_draft(backend, alice, bob):
    controller = make_controller(backend, alice)
    await controller.open_conversation(bob)
    backend.fail_sends = True
    controller.sender.draft = "Hello"

    result = await controller.sender.send()

    assert result is None
    assert not any(m.content == "Hello" for m in controller.messages)
    assert controller.log.pending is None
    assert controller.sender.draft == "Hello"
    assert controller.sender.notice == SEND_FAILED_NOTICE


async def test_hello_scenario_creates_conversation_and_unread_message(backend, alice, bob):
    """Alice opens Bob's profile for the first time and says Hello."""
    controller = make_controller(backend, alice)

    conversation_id = await controller.open_conversation(bob)
    await controller.sender.send("Hello")

    assert len(backend.conversations) == 1
    assert len(backend.messages) == 1
    assert controller.conversations[0].id == conversation_id

    bob_view = make_controller(backend, bob)
    conversations = await bob_view.load_conversations()
    assert conversations[0].id == conversation_id
    assert conversations[0].unread_count >= 1


# Loading and read tracking


async def test_history_is_ordered_and_marked_read_in_background(backend, alice, bob):
    conversation_id = backend.get_or_create(alice, bob)
    backend.insert_message(conversation_id, bob, "hi alice")
    backend.insert_message(conversation_id, alice, "hi bob")
    backend.insert_message(conversation_id, bob, "how are you?")

    controller = make_controller(backend, alice)
    await controller.load_conversations()
    await controller.select_conversation(conversation_id)
    shown_before = [(m.id, m.content) for m in controller.messages]

    times = [m.created_at for m in controller.messages]
    assert times == sorted(times)

    await controller.flush()

    assert [(m.id, m.content) for m in controller.messages] == shown_before
    for message in backend.history(conversation_id):
        assert message.is_read is (message.sender_id == bob)
    assert [m.is_read for m in controller.messages] == [True, False, True]
    assert controller.conversations[0].unread_count == 0


async def test_mark_read_failure_is_not_surfaced(backend, alice, bob):
    conversation_id = backend.get_or_create(alice, bob)
    backend.insert_message(conversation_id, bob, "ping")
    backend.fail_mark_read = True

    controller = make_controller(backend, alice)
    await controller.select_conversation(conversation_id)
    await controller.flush()

    assert controller.notice is None
    assert [m.content for m in controller.messages] == ["ping"]


async def test_load_conversations_failure_keeps_previous_list(backend, alice, bob):
    backend.get_or_create(alice, bob)
    controller = make_controller(backend, alice)
    await controller.load_conversations()

    async def broken():
        raise ClientError("Could not reach the server")

    controller.client.list_conversations = broken
    conversations = await controller.load_conversations()

    assert len(conversations) == 1
    assert controller.notice


# Realtime


async def test_realtime_insert_is_merged_once(backend, channel, alice, bob):
    conversation_id = backend.get_or_create(alice, bob)
    controller = make_controller(backend, alice, channel)
    await controller.select_conversation(conversation_id)
    await controller.subscription.wait_subscribed()

    record = backend.insert_message(conversation_id, bob, "are you there?")
    await eventually(lambda: record.id in controller.log)

    # The same event delivered again does not duplicate the message
    channel.publish(
        channel_name(conversation_id),
        json.dumps(
            {"id": str(record.id), "conversation_id": str(conversation_id), "sender_id": str(bob)}
        ),
    )
    await asyncio.sleep(0.05)

    assert [m.content for m in controller.messages] == ["are you there?"]
    await controller.close()


async def test_own_send_is_not_duplicated_by_realtime(backend, channel, alice, bob):
    controller = make_controller(backend, alice, channel)
    await controller.open_conversation(bob)
    await controller.subscription.wait_subscribed()

    await controller.sender.send("Hello")
    await asyncio.sleep(0.05)

    assert [m.content for m in controller.messages] == ["Hello"]
    await controller.close()


async def test_switching_conversation_closes_previous_subscription(backend, channel, alice, bob):
    carol = uuid4()
    first = backend.get_or_create(alice, bob)
    second = backend.get_or_create(alice, carol)
    controller = make_controller(backend, alice, channel)

    await controller.select_conversation(first)
    await controller.subscription.wait_subscribed()
    await controller.select_conversation(second)
    await controller.subscription.wait_subscribed()

    assert channel.listeners(channel_name(first)) == 0
    assert channel.listeners(channel_name(second)) == 1
    assert controller.subscription.conversation_id == second

    # Inserts in the old conversation no longer reach the view
    backend.insert_message(first, bob, "old conversation")
    await asyncio.sleep(0.05)
    assert controller.messages == []

    await controller.close()
    assert channel.listeners(channel_name(second)) == 0


async def test_reconnect_refetches_missed_messages(backend, channel, alice, bob):
    conversation_id = backend.get_or_create(alice, bob)
    controller = make_controller(backend, alice, channel)
    await controller.select_conversation(conversation_id)
    subscription = controller.subscription
    await subscription.wait_subscribed()

    channel.drop(channel_name(conversation_id))
    missed = backend.insert_message(conversation_id, bob, "sent while offline", publish=False)

    await eventually(lambda: subscription.connections == 2)
    await eventually(lambda: missed.id in controller.log)
    assert [m.content for m in controller.messages] == ["sent while offline"]

    await controller.close()


async def test_insert_during_history_load_is_kept(backend, channel, alice, bob):
    conversation_id = backend.get_or_create(alice, bob)
    older = backend.insert_message(conversation_id, bob, "before opening", publish=False)
    backend.history_gate = asyncio.Event()
    controller = make_controller(backend, alice, channel)

    task = asyncio.create_task(controller.select_conversation(conversation_id))
    await eventually(lambda: controller.loading and controller.subscription is not None)
    await controller.subscription.wait_subscribed()

    arrived = backend.insert_message(conversation_id, bob, "arrived during load")
    await eventually(lambda: arrived.id in controller.log)

    backend.history_gate.set()
    await task

    assert older.id in controller.log
    assert [m.content for m in controller.messages] == ["before opening", "arrived during load"]
    await controller.close()


async def test_own_realtime_row_replaces_pending_before_response(backend, channel, alice, bob):
    controller = make_controller(backend, alice, channel)
    await controller.open_conversation(bob)
    await controller.subscription.wait_subscribed()
    backend.respond_gate = asyncio.Event()

    task = asyncio.create_task(controller.sender.send("Hello"))
    await eventually(lambda: len(backend.messages) == 1)
    stored = next(iter(backend.messages.values()))
    await eventually(lambda: stored.id in controller.log)

    # Shown once, already confirmed, while the response is still outstanding
    assert [(type(m), m.content) for m in controller.messages] == [(ConfirmedMessage, "Hello")]
    assert controller.sender.sending
    assert await controller.sender.send("Again") is None

    backend.respond_gate.set()
    record = await task

    assert record is not None and record.id == stored.id
    assert [m.content for m in controller.messages] == ["Hello"]
    assert controller.sender.sending is False
    await controller.close()
