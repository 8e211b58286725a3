"""Profile schemas for request/response validation."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

UserType = Literal["professional", "employer", "student"]


class ProfileSummary(BaseModel):
    """Display identity of a user, joined into other records."""

    id: UUID
    full_name: str | None = None
    headline: str | None = None
    user_type: str | None = None
    profile_photo: str | None = None

    model_config = {"from_attributes": True}


class ProfileCreate(BaseModel):
    """Schema for creating a profile on first login."""

    firebase_uid: str = Field(..., description="Firebase user ID")
    email: EmailStr
    full_name: str | None = None
    profile_photo: str | None = None


class ProfileUpdate(BaseModel):
    """Schema for updating the owner's profile."""

    full_name: str | None = Field(None, min_length=1, max_length=200)
    headline: str | None = Field(None, max_length=220)
    bio: str | None = Field(None, max_length=2000)
    user_type: UserType | None = None
    location: str | None = Field(None, max_length=200)
    phone_number: str | None = Field(None, max_length=20)
    license_number: str | None = Field(None, max_length=100)
    specialization: str | None = Field(None, max_length=200)
    qualification: str | None = Field(None, max_length=200)
    years_of_experience: int | None = Field(None, ge=0, le=80)
    skills: list[str] | None = None
    experience: list[dict[str, Any]] | None = None
    education: list[dict[str, Any]] | None = None


class ProfileResponse(BaseModel):
    """Full profile as returned to its owner and to other members."""

    id: UUID
    email: EmailStr
    full_name: str | None = None
    headline: str | None = None
    bio: str | None = None
    user_type: str
    location: str | None = None
    phone_number: str | None = None
    profile_photo: str | None = None
    cover_photo: str | None = None
    license_number: str | None = None
    specialization: str | None = None
    qualification: str | None = None
    years_of_experience: int | None = None
    skills: list[Any] = Field(default_factory=list)
    experience: list[Any] = Field(default_factory=list)
    education: list[Any] = Field(default_factory=list)
    account_status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProfileStats(BaseModel):
    """Counters shown on a profile."""

    profile_views: int
    care_team_count: int


class PhotoUploadResponse(BaseModel):
    """Result of a profile or cover photo upload."""

    kind: Literal["profile", "cover"]
    url: str
