"""Optimistic sending of messages from the compose box."""

from typing import TYPE_CHECKING

import structlog

from healthnet.messaging.errors import ClientError
from healthnet.schemas.messaging import MAX_MESSAGE_LENGTH, MessageRecord

if TYPE_CHECKING:
    from healthnet.messaging.stream import MessageStreamController

logger = structlog.get_logger(__name__)

SEND_FAILED_NOTICE = "Your message could not be sent. Please try again."


class OptimisticSendPipeline:
    """
    Sends the draft of the open conversation.

    The message is shown as pending and the draft cleared before the server
    answers. On success the pending entry becomes the confirmed row; on
    failure it is removed, the draft gets its text back and ``notice`` is
    set. Only one send is in flight at a time.
    """

    def __init__(self, controller: "MessageStreamController"):
        self.controller = controller
        self.draft = ""
        self.notice: str | None = None
        self._in_flight = False

    @property
    def sending(self) -> bool:
        # The realtime feed may confirm the message before the response arrives
        log = self.controller.log
        return self._in_flight or (log is not None and log.pending is not None)

    async def send(self, text: str | None = None) -> MessageRecord | None:
        """
        Send ``text``, or the current draft when omitted.

        Returns:
            The confirmed message, or None if nothing was sent
        """
        original = self.draft if text is None else text
        content = original.strip()
        log = self.controller.log

        if not content or log is None or self.sending:
            return None
        if len(content) > MAX_MESSAGE_LENGTH:
            self.notice = f"Messages are limited to {MAX_MESSAGE_LENGTH} characters."
            return None

        pending = log.add_pending(content, self.controller.session.user_id)
        self.draft = ""
        self.notice = None

        self._in_flight = True
        try:
            record = await self.controller.client.send_message(log.conversation_id, content)
        except ClientError as e:
            log.discard(pending.local_id)
            if self.controller.log is log:
                self.draft = original
            self.notice = SEND_FAILED_NOTICE
            logger.warning(
                "message_send_failed",
                conversation_id=str(log.conversation_id),
                error=e.message,
                status_code=e.status_code,
            )
            return None
        finally:
            self._in_flight = False

        log.confirm(pending.local_id, record)
        self.controller.touch_conversation(log.conversation_id, record.created_at)
        logger.info("message_sent", conversation_id=str(log.conversation_id), message_id=str(record.id))
        return record
