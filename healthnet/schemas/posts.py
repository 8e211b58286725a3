"""Post, like and comment schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from healthnet.schemas.profiles import ProfileSummary

MAX_POST_LENGTH = 3000
MAX_COMMENT_LENGTH = 1000


def _require_text(v: str, what: str) -> str:
    trimmed = v.strip()
    if not trimmed:
        raise ValueError(f"{what} cannot be empty")
    return trimmed


class PostCreate(BaseModel):
    """Schema for creating a post."""

    content: str = Field(..., max_length=MAX_POST_LENGTH)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Reject blank posts."""
        return _require_text(v, "Post content")


class PostResponse(BaseModel):
    """A post with author and engagement counters."""

    id: UUID
    user_id: UUID
    content: str
    created_at: datetime
    author: ProfileSummary
    like_count: int = 0
    comment_count: int = 0
    liked_by_me: bool = False


class LikeToggleResponse(BaseModel):
    """State of a like after toggling."""

    post_id: UUID
    liked: bool
    like_count: int


class CommentCreate(BaseModel):
    """Schema for commenting on a post."""

    content: str = Field(..., max_length=MAX_COMMENT_LENGTH)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Reject blank comments."""
        return _require_text(v, "Comment")


class CommentResponse(BaseModel):
    """A comment with its author."""

    id: UUID
    post_id: UUID
    user_id: UUID
    content: str
    created_at: datetime
    author: ProfileSummary
