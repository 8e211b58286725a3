"""Realtime change feed for message inserts, published over Redis pub/sub."""

import json
from uuid import UUID

import redis
from structlog import get_logger

from healthnet.config import settings

logger = get_logger(__name__)


def message_channel(conversation_id: UUID | str) -> str:
    """Name of the pub/sub channel carrying inserts for one conversation."""
    return f"{settings.realtime_channel_prefix}:{conversation_id}"


def build_insert_event(message_id: UUID, conversation_id: UUID, sender_id: UUID) -> str:
    """Serialize the payload delivered to subscribers for an inserted message."""
    return json.dumps(
        {
            "event": "INSERT",
            "table": "messages",
            "id": str(message_id),
            "conversation_id": str(conversation_id),
            "sender_id": str(sender_id),
        }
    )


def publish_message_inserted(
    redis_client: redis.Redis,
    message_id: UUID,
    conversation_id: UUID,
    sender_id: UUID,
) -> int:
    """
    Announce a newly persisted message to subscribers of its conversation.

    The row is already committed when this runs, so a publish failure is
    logged and swallowed: subscribers recover it on their next history fetch.

    Returns:
        Number of subscribers that received the event
    """
    try:
        receivers = redis_client.publish(
            message_channel(conversation_id),
            build_insert_event(message_id, conversation_id, sender_id),
        )
    except redis.RedisError as e:
        logger.warning(
            "realtime_publish_failed",
            conversation_id=str(conversation_id),
            message_id=str(message_id),
            error=str(e),
        )
        return 0

    logger.debug(
        "realtime_message_published",
        conversation_id=str(conversation_id),
        message_id=str(message_id),
        receivers=receivers,
    )
    return int(receivers)
