"""In-memory message log of one conversation, with optimistic entries."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from healthnet.schemas.messaging import MessageRecord


@dataclass(frozen=True)
class PendingMessage:
    """A message shown before the server has confirmed it."""

    local_id: UUID
    conversation_id: UUID
    sender_id: UUID
    content: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class ConfirmedMessage:
    """A message persisted by the server."""

    record: MessageRecord

    @property
    def id(self) -> UUID:
        return self.record.id

    @property
    def sender_id(self) -> UUID:
        return self.record.sender_id

    @property
    def content(self) -> str:
        return self.record.content

    @property
    def created_at(self) -> datetime:
        return self.record.created_at

    @property
    def is_read(self) -> bool:
        return self.record.is_read


DisplayedMessage = PendingMessage | ConfirmedMessage


class PendingSendError(Exception):
    """A send is already in flight for this conversation view."""


class MessageLog:
    """
    Ordered messages of one conversation.

    Confirmed messages are keyed by server id, so the same row arriving from
    history, from the send response and from the realtime feed is kept once.
    At most one pending message exists, always displayed last.
    """

    def __init__(self, conversation_id: UUID):
        self.conversation_id = conversation_id
        self._confirmed: dict[UUID, ConfirmedMessage] = {}
        self._pending: PendingMessage | None = None

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._confirmed

    def __len__(self) -> int:
        return len(self._confirmed) + (1 if self._pending else 0)

    @property
    def pending(self) -> PendingMessage | None:
        return self._pending

    @property
    def messages(self) -> list[DisplayedMessage]:
        """Confirmed messages by ``(created_at, id)``, then the pending one."""
        ordered: list[DisplayedMessage] = sorted(
            self._confirmed.values(), key=lambda m: (m.created_at, str(m.id))
        )
        if self._pending is not None:
            ordered.append(self._pending)
        return ordered

    def merge(self, record: MessageRecord) -> bool:
        """Add a confirmed message unless one with the same id is present."""
        if record.conversation_id != self.conversation_id or record.id in self._confirmed:
            return False
        self._confirmed[record.id] = ConfirmedMessage(record)
        return True

    def merge_all(self, records: list[MessageRecord]) -> int:
        return sum(1 for record in records if self.merge(record))

    def reconcile(self, record: MessageRecord) -> bool:
        """
        Merge a row delivered by the realtime feed.

        The sender's own row can arrive before the send response does; it then
        takes the place of the matching pending entry instead of showing twice.
        """
        pending = self._pending
        if (
            pending is not None
            and record.conversation_id == self.conversation_id
            and record.sender_id == pending.sender_id
            and record.content == pending.content
        ):
            return self.confirm(pending.local_id, record)
        return self.merge(record)

    def add_pending(self, content: str, sender_id: UUID) -> PendingMessage:
        """Append a local message for a send that has not completed yet."""
        if self._pending is not None:
            raise PendingSendError("A message is already being sent")
        self._pending = PendingMessage(
            local_id=uuid4(),
            conversation_id=self.conversation_id,
            sender_id=sender_id,
            content=content,
        )
        return self._pending

    def confirm(self, local_id: UUID, record: MessageRecord) -> bool:
        """Swap the pending message for the row the server returned."""
        self.discard(local_id)
        return self.merge(record)

    def discard(self, local_id: UUID) -> None:
        """Drop the pending message after a failed send."""
        if self._pending is not None and self._pending.local_id == local_id:
            self._pending = None

    def apply_read(self, reader_id: UUID) -> int:
        """Flag every message not sent by ``reader_id`` as read."""
        changed = 0
        for message_id, message in self._confirmed.items():
            if message.sender_id != reader_id and not message.is_read:
                self._confirmed[message_id] = ConfirmedMessage(
                    message.record.model_copy(update={"is_read": True})
                )
                changed += 1
        return changed
