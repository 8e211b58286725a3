"""Care Team schemas."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel

from healthnet.schemas.profiles import ProfileSummary


class CareTeamStatus(str, Enum):
    """Care Team relation status enumeration."""

    PENDING = "pending"
    ACCEPTED = "accepted"


class CareTeamRequestCreate(BaseModel):
    """Schema for sending a Care Team request."""

    receiver_id: UUID


class CareTeamRelation(BaseModel):
    """A Care Team relation row."""

    id: UUID
    requester_id: UUID
    receiver_id: UUID
    status: CareTeamStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class CareTeamRequest(CareTeamRelation):
    """A pending request with the requester's display identity."""

    requester: ProfileSummary


class CareTeamMember(ProfileSummary):
    """An accepted connection seen from the current user's side."""

    relation_id: UUID
    connected_at: datetime


class CareTeamStatusResponse(BaseModel):
    """Relation between the current user and another profile."""

    status: CareTeamStatus | None = None
    relation_id: UUID | None = None
    is_requester: bool = False
