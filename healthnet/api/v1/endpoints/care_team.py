"""Care Team endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from healthnet.dependencies import ActiveUserId, DatabaseSession
from healthnet.schemas.care_team import (
    CareTeamMember,
    CareTeamRelation,
    CareTeamRequest,
    CareTeamRequestCreate,
    CareTeamStatusResponse,
)
from healthnet.schemas.profiles import ProfileSummary
from healthnet.services.care_team_service import CareTeamService

router = APIRouter(prefix="/care-team", tags=["Care Team"])


@router.get("", response_model=list[CareTeamMember], summary="List Care Team members")
async def list_members(user_id: ActiveUserId, db: DatabaseSession) -> list[CareTeamMember]:
    """Accepted connections of the current user."""
    return await CareTeamService(db).list_members(user_id)


@router.get(
    "/requests",
    response_model=list[CareTeamRequest],
    summary="List incoming requests",
)
async def list_requests(user_id: ActiveUserId, db: DatabaseSession) -> list[CareTeamRequest]:
    """Pending requests waiting for the current user's answer."""
    return await CareTeamService(db).list_pending_requests(user_id)


@router.get(
    "/suggestions",
    response_model=list[ProfileSummary],
    summary="People you may know",
)
async def suggestions(
    user_id: ActiveUserId,
    db: DatabaseSession,
    limit: int = Query(6, ge=1, le=50),
) -> list[ProfileSummary]:
    """Active members with no relation to the current user yet."""
    return await CareTeamService(db).suggestions(user_id, limit)


@router.get(
    "/status/{other_user_id}",
    response_model=CareTeamStatusResponse,
    summary="Relation with another member",
)
async def get_status(
    other_user_id: UUID,
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> CareTeamStatusResponse:
    """Whether the current user is connected to, or has a pending request with, another member."""
    return await CareTeamService(db).get_status(user_id, other_user_id)


@router.post(
    "/requests",
    response_model=CareTeamRelation,
    status_code=status.HTTP_201_CREATED,
    summary="Send Care Team request",
)
async def send_request(
    data: CareTeamRequestCreate,
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> CareTeamRelation:
    """Ask another member to join the current user's Care Team."""
    return await CareTeamService(db).send_request(user_id, data.receiver_id)


@router.post(
    "/requests/{request_id}/accept",
    response_model=CareTeamRelation,
    summary="Accept Care Team request",
)
async def accept_request(
    request_id: UUID,
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> CareTeamRelation:
    """Accept a pending request addressed to the current user."""
    return await CareTeamService(db).accept_request(request_id, user_id)


@router.delete(
    "/requests/{request_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Decline or cancel a request",
)
async def delete_request(request_id: UUID, user_id: ActiveUserId, db: DatabaseSession) -> None:
    """Decline a received request or withdraw a sent one."""
    await CareTeamService(db).delete_request(request_id, user_id)


@router.delete(
    "/members/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove Care Team member",
)
async def remove_member(member_id: UUID, user_id: ActiveUserId, db: DatabaseSession) -> None:
    await CareTeamService(db).remove_member(user_id, member_id)
