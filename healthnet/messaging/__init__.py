"""Client side of HealthNet messaging."""

from healthnet.messaging.client import HealthNetClient
from healthnet.messaging.config import ClientSettings, get_client_settings
from healthnet.messaging.errors import ClientError, ConversationUnavailable, SessionExpired
from healthnet.messaging.realtime import (
    InsertEvent,
    RealtimeChannel,
    RealtimeSubscription,
    RedisChannel,
)
from healthnet.messaging.resolver import ConversationResolver
from healthnet.messaging.sending import OptimisticSendPipeline
from healthnet.messaging.session import Session
from healthnet.messaging.state import (
    ConfirmedMessage,
    DisplayedMessage,
    MessageLog,
    PendingMessage,
)
from healthnet.messaging.stream import MessageStreamController

__all__ = [
    "ClientError",
    "ClientSettings",
    "ConfirmedMessage",
    "ConversationResolver",
    "ConversationUnavailable",
    "DisplayedMessage",
    "HealthNetClient",
    "InsertEvent",
    "MessageLog",
    "MessageStreamController",
    "OptimisticSendPipeline",
    "PendingMessage",
    "RealtimeChannel",
    "RealtimeSubscription",
    "RedisChannel",
    "Session",
    "SessionExpired",
    "get_client_settings",
]
