"""Care Team service: connection requests between members."""

from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy import and_, case, delete, or_, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from healthnet.core.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from healthnet.models.care_team import care_team
from healthnet.models.profiles import profiles
from healthnet.schemas.care_team import (
    CareTeamMember,
    CareTeamRelation,
    CareTeamRequest,
    CareTeamStatus,
    CareTeamStatusResponse,
)
from healthnet.schemas.profiles import ProfileSummary
from healthnet.services.joins import (
    SUMMARY_FIELDS,
    profile_summary,
    profile_summary_columns,
    strip_prefixed,
)

logger = structlog.get_logger(__name__)


def _between(user_a: UUID, user_b: UUID):
    return or_(
        and_(care_team.c.requester_id == user_a, care_team.c.receiver_id == user_b),
        and_(care_team.c.requester_id == user_b, care_team.c.receiver_id == user_a),
    )


class CareTeamService:
    """Service for managing Care Team requests and connections."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def list_members(self, user_id: UUID) -> list[CareTeamMember]:
        """List accepted connections, newest first."""
        other_id = case(
            (care_team.c.requester_id == user_id, care_team.c.receiver_id),
            else_=care_team.c.requester_id,
        )
        query = (
            select(
                care_team.c.id.label("relation_id"),
                care_team.c.updated_at.label("connected_at"),
                *profile_summary_columns(profiles, "member"),
            )
            .select_from(care_team.join(profiles, profiles.c.id == other_id))
            .where(
                or_(care_team.c.requester_id == user_id, care_team.c.receiver_id == user_id),
                care_team.c.status == CareTeamStatus.ACCEPTED.value,
            )
            .order_by(care_team.c.updated_at.desc())
        )
        result = await self.db.execute(query)
        return [
            CareTeamMember(
                relation_id=row.relation_id,
                connected_at=row.connected_at,
                **{field: row._mapping[f"member__{field}"] for field in SUMMARY_FIELDS},
            )
            for row in result
        ]

    async def list_pending_requests(self, user_id: UUID) -> list[CareTeamRequest]:
        """List requests waiting for the user's answer."""
        query = (
            select(care_team, *profile_summary_columns(profiles, "requester"))
            .select_from(care_team.join(profiles, profiles.c.id == care_team.c.requester_id))
            .where(
                care_team.c.receiver_id == user_id,
                care_team.c.status == CareTeamStatus.PENDING.value,
            )
            .order_by(care_team.c.created_at.desc())
        )
        result = await self.db.execute(query)
        return [
            CareTeamRequest(
                **strip_prefixed(row._mapping, "requester"),
                requester=profile_summary(row._mapping, "requester"),
            )
            for row in result
        ]

    async def suggestions(self, user_id: UUID, limit: int = 6) -> list[ProfileSummary]:
        """Suggest active members the user has no relation with yet."""
        related = select(
            case(
                (care_team.c.requester_id == user_id, care_team.c.receiver_id),
                else_=care_team.c.requester_id,
            )
        ).where(or_(care_team.c.requester_id == user_id, care_team.c.receiver_id == user_id))

        query = (
            select(*[profiles.c[field] for field in SUMMARY_FIELDS])
            .where(
                profiles.c.id != user_id,
                profiles.c.id.not_in(related),
                profiles.c.account_status == "active",
            )
            .order_by(profiles.c.created_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return [ProfileSummary.model_validate(dict(row._mapping)) for row in result]

    async def get_status(self, user_id: UUID, other_user_id: UUID) -> CareTeamStatusResponse:
        """Describe the relation between the user and another member, if any."""
        row = (await self.db.execute(select(care_team).where(_between(user_id, other_user_id)))).first()
        if row is None:
            return CareTeamStatusResponse()
        return CareTeamStatusResponse(
            status=row.status,
            relation_id=row.id,
            is_requester=row.requester_id == user_id,
        )

    async def send_request(self, requester_id: UUID, receiver_id: UUID) -> CareTeamRelation:
        """
        Send a Care Team request.

        Raises:
            BadRequestException: When sending a request to oneself
            NotFoundException: If the receiver does not exist
            ConflictException: If any relation between the pair already exists
        """
        if requester_id == receiver_id:
            raise BadRequestException("Cannot add yourself to your Care Team")

        exists = await self.db.scalar(
            select(profiles.c.id).where(
                profiles.c.id == receiver_id, profiles.c.account_status == "active"
            )
        )
        if exists is None:
            raise NotFoundException("User not found")

        stmt = (
            insert(care_team)
            .values(
                requester_id=requester_id,
                receiver_id=receiver_id,
                status=CareTeamStatus.PENDING.value,
            )
            .on_conflict_do_nothing()
            .returning(care_team)
        )
        row = (await self.db.execute(stmt)).first()
        await self.db.commit()

        if row is None:
            raise ConflictException("A Care Team request already exists")

        logger.info(
            "care_team_request_sent",
            requester_id=str(requester_id),
            receiver_id=str(receiver_id),
        )
        return CareTeamRelation.model_validate(dict(row._mapping))

    async def accept_request(self, request_id: UUID, user_id: UUID) -> CareTeamRelation:
        """Accept a pending request addressed to the user."""
        row = await self._get_relation(request_id)
        if row.receiver_id != user_id:
            raise ForbiddenException("Only the receiver can accept this request")
        if row.status != CareTeamStatus.PENDING.value:
            raise ConflictException("Request is not pending")

        result = await self.db.execute(
            update(care_team)
            .where(care_team.c.id == request_id)
            .values(status=CareTeamStatus.ACCEPTED.value, updated_at=datetime.now(UTC))
            .returning(care_team)
        )
        await self.db.commit()
        logger.info("care_team_request_accepted", request_id=str(request_id))
        return CareTeamRelation.model_validate(dict(result.first()._mapping))

    async def delete_request(self, request_id: UUID, user_id: UUID) -> None:
        """Reject, cancel or remove a relation the user is part of."""
        row = await self._get_relation(request_id)
        if user_id not in (row.requester_id, row.receiver_id):
            raise ForbiddenException("Access denied to this request")

        await self.db.execute(delete(care_team).where(care_team.c.id == request_id))
        await self.db.commit()
        logger.info("care_team_relation_deleted", request_id=str(request_id))

    async def remove_member(self, user_id: UUID, member_id: UUID) -> None:
        """Remove the relation between the user and another member."""
        result = await self.db.execute(delete(care_team).where(_between(user_id, member_id)))
        await self.db.commit()
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise NotFoundException("Care Team member not found")

    async def _get_relation(self, relation_id: UUID):
        row = (
            await self.db.execute(select(care_team).where(care_team.c.id == relation_id))
        ).first()
        if row is None:
            raise NotFoundException("Care Team request not found")
        return row
