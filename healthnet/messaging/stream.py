"""Controller for the conversation list and the open conversation's messages."""

import asyncio
from datetime import datetime
from uuid import UUID

import structlog

from healthnet.messaging.client import HealthNetClient
from healthnet.messaging.errors import ClientError, ConversationUnavailable
from healthnet.messaging.realtime import InsertEvent, RealtimeChannel, RealtimeSubscription
from healthnet.messaging.resolver import ConversationResolver
from healthnet.messaging.sending import OptimisticSendPipeline
from healthnet.messaging.session import Session
from healthnet.messaging.state import DisplayedMessage, MessageLog
from healthnet.schemas.messaging import ConversationSummary

logger = structlog.get_logger(__name__)


class MessageStreamController:
    """
    State behind the messages page.

    Holds the conversation list, the selected conversation's message log and
    the one realtime subscription for it. Remote failures never escape: they
    are logged and surfaced through ``notice`` while the last good state is
    kept.
    """

    def __init__(
        self,
        client: HealthNetClient,
        session: Session,
        channel: RealtimeChannel | None = None,
        resolver: ConversationResolver | None = None,
    ):
        self.client = client
        self.session = session
        self.channel = channel
        self.resolver = resolver or ConversationResolver(client)
        self.sender = OptimisticSendPipeline(self)

        self.conversations: list[ConversationSummary] = []
        self.log: MessageLog | None = None
        self.loading = False
        self.notice: str | None = None

        self._subscription: RealtimeSubscription | None = None
        self._background: set[asyncio.Task] = set()

    async def __aenter__(self) -> "MessageStreamController":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def selected_conversation_id(self) -> UUID | None:
        return self.log.conversation_id if self.log else None

    @property
    def messages(self) -> list[DisplayedMessage]:
        return self.log.messages if self.log else []

    @property
    def subscription(self) -> RealtimeSubscription | None:
        return self._subscription

    # Conversation list

    async def load_conversations(self) -> list[ConversationSummary]:
        """Fetch every conversation of the session user, most recently updated first."""
        self.loading = True
        try:
            self.conversations = await self.client.list_conversations()
        except ClientError as e:
            logger.warning("conversations_load_failed", error=e.message)
            self.notice = "Could not load your conversations."
        finally:
            self.loading = False
        return self.conversations

    def _find_conversation(self, conversation_id: UUID) -> ConversationSummary | None:
        return next((c for c in self.conversations if c.id == conversation_id), None)

    def touch_conversation(self, conversation_id: UUID, updated_at: datetime) -> None:
        """Move a conversation to the top after a message was sent in it."""
        conversation = self._find_conversation(conversation_id)
        if conversation is None:
            return
        self.conversations.remove(conversation)
        self.conversations.insert(0, conversation.model_copy(update={"updated_at": updated_at}))

    def _set_unread(self, conversation_id: UUID, unread_count: int) -> None:
        for i, conversation in enumerate(self.conversations):
            if conversation.id == conversation_id:
                self.conversations[i] = conversation.model_copy(update={"unread_count": unread_count})

    # Selection

    async def open_conversation(self, other_user_id: UUID) -> UUID | None:
        """
        Open the conversation with another user, creating it if needed.

        On failure the notice is set and no conversation stays selected.
        """
        try:
            conversation = await self.resolver.resolve(other_user_id)
        except ConversationUnavailable as e:
            await self.clear_selection()
            self.notice = e.message
            return None

        if self._find_conversation(conversation.id) is None:
            self.conversations.insert(0, conversation)
        await self.select_conversation(conversation.id)
        return conversation.id

    async def select_conversation(self, conversation_id: UUID) -> None:
        """Show a conversation: tear down the old subscription, subscribe, load history."""
        if self.selected_conversation_id == conversation_id and self._subscription is not None:
            return

        await self.clear_selection()
        self.log = MessageLog(conversation_id)

        if self.channel is not None:
            self._subscription = RealtimeSubscription(
                self.channel,
                conversation_id,
                on_insert=self._handle_insert,
                on_reconnect=self._handle_reconnect,
            )
            self._subscription.start()

        await self.load_messages(conversation_id)

    async def clear_selection(self) -> None:
        """Close the subscription and drop the displayed messages."""
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            await subscription.close()
        self.log = None
        self.sender.draft = ""

    # Messages

    async def load_messages(self, conversation_id: UUID) -> list[DisplayedMessage]:
        """
        Fetch the whole history oldest-first, then mark it read in the background.

        The read-mark does not hold up the returned messages and its failure
        is only logged.
        """
        log = self.log
        if log is None or log.conversation_id != conversation_id:
            raise ValueError("Conversation is not selected")

        self.loading = True
        try:
            records = await self.client.list_messages(conversation_id)
        except ClientError as e:
            logger.warning(
                "messages_load_failed", conversation_id=str(conversation_id), error=e.message
            )
            self.notice = "Could not load messages."
            return log.messages
        finally:
            self.loading = False

        # Rows merged by the realtime feed while the fetch ran are kept
        log.merge_all(records)
        self._spawn(self._mark_read(log))
        return log.messages

    async def _mark_read(self, log: MessageLog) -> None:
        try:
            updated = await self.client.mark_read(log.conversation_id)
        except ClientError as e:
            logger.info(
                "mark_read_failed", conversation_id=str(log.conversation_id), error=e.message
            )
            return
        log.apply_read(self.session.user_id)
        self._set_unread(log.conversation_id, 0)
        logger.debug("messages_marked_read", conversation_id=str(log.conversation_id), updated=updated)

    async def _handle_insert(self, event: InsertEvent) -> None:
        log = self.log
        if log is None or log.conversation_id != event.conversation_id or event.id in log:
            return
        try:
            record = await self.client.get_message(event.id)
        except ClientError as e:
            logger.warning("realtime_message_fetch_failed", message_id=str(event.id), error=e.message)
            return
        if log.reconcile(record):
            logger.debug("realtime_message_merged", message_id=str(record.id))

    async def _handle_reconnect(self) -> None:
        log = self.log
        if log is None:
            return
        try:
            records = await self.client.list_messages(log.conversation_id)
        except ClientError as e:
            logger.warning("history_refetch_failed", error=e.message)
            return
        added = log.merge_all(records)
        logger.info(
            "history_refetched", conversation_id=str(log.conversation_id), added=added
        )

    # Lifecycle

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def flush(self) -> None:
        """Wait for background work such as read-marking to finish."""
        while self._background:
            await asyncio.gather(*list(self._background))

    async def close(self) -> None:
        """Release the subscription and wait for background work."""
        await self.clear_selection()
        await self.flush()
