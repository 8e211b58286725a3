"""Resolve the canonical conversation between the session user and another user."""

from uuid import UUID

import structlog

from healthnet.messaging.client import HealthNetClient
from healthnet.messaging.errors import ClientError, ConversationUnavailable
from healthnet.schemas.messaging import ConversationSummary

logger = structlog.get_logger(__name__)


class ConversationResolver:
    """
    Finds or creates the single conversation for an unordered pair of users.

    The pairing is decided by one atomic call on the server; the resolver
    never looks a conversation up and then inserts one itself.
    """

    def __init__(self, client: HealthNetClient):
        self.client = client

    async def resolve(self, other_user_id: UUID) -> ConversationSummary:
        """
        Get the conversation with ``other_user_id``, creating it on first use.

        Raises:
            ConversationUnavailable: If the server call fails for any reason
        """
        try:
            conversation = await self.client.get_or_create_conversation(other_user_id)
        except ClientError as e:
            logger.warning(
                "conversation_resolve_failed",
                other_user_id=str(other_user_id),
                error=e.message,
                status_code=e.status_code,
            )
            raise ConversationUnavailable(
                "Could not start the conversation. Please try again.", e.status_code
            ) from e

        logger.debug(
            "conversation_resolved",
            conversation_id=str(conversation.id),
            other_user_id=str(other_user_id),
        )
        return conversation
