"""Conversation and message schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from healthnet.schemas.profiles import ProfileSummary

MAX_MESSAGE_LENGTH = 5000


class ConversationCreate(BaseModel):
    """Request to find or create the conversation with another user."""

    other_user_id: UUID


class StartConversationRequest(BaseModel):
    """Server-context get-or-create request, camelCase on the wire."""

    model_config = ConfigDict(populate_by_name=True)

    current_user_id: UUID = Field(
        ..., validation_alias=AliasChoices("currentUserId", "current_user_id")
    )
    other_user_id: UUID = Field(..., validation_alias=AliasChoices("otherUserId", "other_user_id"))


class StartConversationResponse(BaseModel):
    """Server-context get-or-create response."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: UUID = Field(..., alias="conversationId")


class ConversationSummary(BaseModel):
    """A conversation annotated with the other participant."""

    id: UUID
    user1_id: UUID
    user2_id: UUID
    created_at: datetime
    updated_at: datetime
    other_user: ProfileSummary
    unread_count: int = 0

    model_config = {"from_attributes": True}


class MessageCreate(BaseModel):
    """Schema for sending a message."""

    content: str = Field(..., max_length=MAX_MESSAGE_LENGTH)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Reject blank messages and store the trimmed text."""
        trimmed = v.strip()
        if not trimmed:
            raise ValueError("Message content cannot be empty")
        return trimmed


class MessageSender(BaseModel):
    """Sender display fields joined into a message."""

    full_name: str | None = None
    profile_photo: str | None = None


class MessageRecord(BaseModel):
    """A persisted message with joined sender fields."""

    id: UUID
    conversation_id: UUID
    sender_id: UUID
    content: str
    is_read: bool
    created_at: datetime
    sender: MessageSender = Field(default_factory=MessageSender)

    model_config = {"from_attributes": True}


class MarkReadResponse(BaseModel):
    """Number of messages flipped to read."""

    updated: int
