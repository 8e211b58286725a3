"""Conversation and message endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from healthnet.dependencies import ActiveUserId, DatabaseSession, RedisClient
from healthnet.schemas.messaging import (
    ConversationCreate,
    ConversationSummary,
    MarkReadResponse,
    MessageCreate,
    MessageRecord,
)
from healthnet.services.conversation_service import ConversationService

router = APIRouter()


@router.get(
    "/conversations",
    response_model=list[ConversationSummary],
    status_code=status.HTTP_200_OK,
    summary="List conversations",
)
async def list_conversations(
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> list[ConversationSummary]:
    """
    List every conversation of the current user, most recently updated first.

    Each entry carries the other participant and an unread count.
    """
    return await ConversationService(db).list_conversations(user_id)


@router.post(
    "/conversations",
    response_model=ConversationSummary,
    status_code=status.HTTP_200_OK,
    summary="Find or create a conversation",
)
async def get_or_create_conversation(
    data: ConversationCreate,
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> ConversationSummary:
    """
    Return the single conversation with another user, creating it on first use.

    Repeated calls for the same pair, from either side, return the same
    conversation.
    """
    service = ConversationService(db)
    conversation_id = await service.get_or_create(user_id, data.other_user_id)
    return await service.get_conversation(conversation_id, user_id)


@router.get(
    "/conversations/{conversation_id}",
    response_model=ConversationSummary,
    status_code=status.HTTP_200_OK,
    summary="Get conversation",
)
async def get_conversation(
    conversation_id: UUID,
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> ConversationSummary:
    """Get one conversation the current user takes part in."""
    return await ConversationService(db).get_conversation(conversation_id, user_id)


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=list[MessageRecord],
    status_code=status.HTTP_200_OK,
    summary="List messages",
)
async def list_messages(
    conversation_id: UUID,
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> list[MessageRecord]:
    """Return the whole message log of a conversation, oldest first."""
    return await ConversationService(db).list_messages(conversation_id, user_id)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Send message",
)
async def send_message(
    conversation_id: UUID,
    data: MessageCreate,
    user_id: ActiveUserId,
    db: DatabaseSession,
    redis_client: RedisClient,
) -> MessageRecord:
    """Append a message and publish it to the conversation's realtime channel."""
    service = ConversationService(db, redis_client)
    return await service.send_message(conversation_id, user_id, data.content)


@router.post(
    "/conversations/{conversation_id}/read",
    response_model=MarkReadResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark messages read",
)
async def mark_read(
    conversation_id: UUID,
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> MarkReadResponse:
    """Mark every message not sent by the current user as read."""
    updated = await ConversationService(db).mark_read(conversation_id, user_id)
    return MarkReadResponse(updated=updated)


@router.get(
    "/messages/{message_id}",
    response_model=MessageRecord,
    status_code=status.HTTP_200_OK,
    summary="Get message",
)
async def get_message(
    message_id: UUID,
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> MessageRecord:
    """Fetch one message with sender fields, as delivered by the realtime feed."""
    return await ConversationService(db).get_message(message_id, user_id)
