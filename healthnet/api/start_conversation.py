"""Server-context wrapper around the atomic conversation get-or-create."""

from fastapi import APIRouter, status

from healthnet.core.exceptions import ForbiddenException
from healthnet.dependencies import ActiveUserId, DatabaseSession
from healthnet.schemas.messaging import StartConversationRequest, StartConversationResponse
from healthnet.services.conversation_service import ConversationService

router = APIRouter(tags=["Messaging"])


@router.post(
    "/start-conversation",
    response_model=StartConversationResponse,
    status_code=status.HTTP_200_OK,
    summary="Start or resume a conversation",
)
async def start_conversation(
    data: StartConversationRequest,
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> StartConversationResponse:
    """
    Return the conversation id for ``(currentUserId, otherUserId)``.

    The pair is unordered, so both participants get the same id. The bearer
    token must belong to ``currentUserId``.
    """
    if data.current_user_id != user_id:
        raise ForbiddenException("currentUserId does not match the signed-in user")

    conversation_id = await ConversationService(db).get_or_create(user_id, data.other_user_id)
    return StartConversationResponse(conversation_id=conversation_id)
