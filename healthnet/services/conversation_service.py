"""Conversation and message service for direct messaging."""

from datetime import UTC, datetime
from uuid import UUID

import redis
import structlog
from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from healthnet.core.exceptions import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
)
from healthnet.core.realtime import publish_message_inserted
from healthnet.models.conversations import conversations, messages
from healthnet.models.profiles import profiles
from healthnet.schemas.messaging import ConversationSummary, MessageRecord, MessageSender
from healthnet.schemas.profiles import ProfileSummary
from healthnet.services.joins import profile_summary, profile_summary_columns

logger = structlog.get_logger(__name__)


def canonical_pair(user_a: UUID, user_b: UUID) -> tuple[UUID, UUID]:
    """Order two participant ids the way conversations store them."""
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


class ConversationService:
    """Service for conversations and their append-only message logs."""

    def __init__(self, db: AsyncSession, redis_client: redis.Redis | None = None):
        """Initialize service with database session and optional realtime publisher."""
        self.db = db
        self.redis = redis_client

    async def get_or_create(self, current_user_id: UUID, other_user_id: UUID) -> UUID:
        """
        Return the single conversation between two users, creating it if needed.

        Runs as one ``INSERT ... ON CONFLICT DO UPDATE ... RETURNING`` on the
        canonical pair, so concurrent callers for the same pair converge on
        one row.

        Raises:
            BadRequestException: If both ids are the same user
            NotFoundException: If the other user has no profile
        """
        if current_user_id == other_user_id:
            raise BadRequestException("Cannot start a conversation with yourself")

        exists = await self.db.scalar(
            select(profiles.c.id).where(
                profiles.c.id == other_user_id,
                profiles.c.account_status != "deleted",
            )
        )
        if exists is None:
            raise NotFoundException("User not found")

        user1_id, user2_id = canonical_pair(current_user_id, other_user_id)
        stmt = insert(conversations).values(user1_id=user1_id, user2_id=user2_id)
        stmt = stmt.on_conflict_do_update(
            constraint="unique_conversation_pair",
            # No-op write so RETURNING yields the existing row's id
            set_={"user1_id": stmt.excluded.user1_id},
        ).returning(conversations.c.id)

        conversation_id = (await self.db.execute(stmt)).scalar_one()
        await self.db.commit()

        logger.info(
            "conversation_resolved",
            conversation_id=str(conversation_id),
            user_id=str(current_user_id),
        )
        return conversation_id

    def _summary_query(self, user_id: UUID):
        other_id = case(
            (conversations.c.user1_id == user_id, conversations.c.user2_id),
            else_=conversations.c.user1_id,
        )
        unread = (
            select(func.count())
            .select_from(messages)
            .where(
                messages.c.conversation_id == conversations.c.id,
                messages.c.sender_id != user_id,
                messages.c.is_read.is_(False),
            )
            .scalar_subquery()
        )
        return (
            select(
                conversations,
                unread.label("unread_count"),
                *profile_summary_columns(profiles, "other"),
            )
            .select_from(conversations.join(profiles, profiles.c.id == other_id))
            .where(
                or_(
                    conversations.c.user1_id == user_id,
                    conversations.c.user2_id == user_id,
                )
            )
        )

    @staticmethod
    def _to_summary(row) -> ConversationSummary:
        mapping = row._mapping
        return ConversationSummary(
            id=mapping["id"],
            user1_id=mapping["user1_id"],
            user2_id=mapping["user2_id"],
            created_at=mapping["created_at"],
            updated_at=mapping["updated_at"],
            unread_count=mapping["unread_count"],
            other_user=profile_summary(mapping, "other") or ProfileSummary(id=mapping["user2_id"]),
        )

    async def list_conversations(self, user_id: UUID) -> list[ConversationSummary]:
        """
        List every conversation the user takes part in, most recently updated first.

        Each entry carries the other participant's display identity and the
        number of messages the user has not read yet.
        """
        query = self._summary_query(user_id).order_by(
            conversations.c.updated_at.desc(), conversations.c.id
        )
        result = await self.db.execute(query)
        return [self._to_summary(row) for row in result]

    async def get_conversation(self, conversation_id: UUID, user_id: UUID) -> ConversationSummary:
        """Get one conversation as seen by a participant."""
        await self._require_participant(conversation_id, user_id)
        query = self._summary_query(user_id).where(conversations.c.id == conversation_id)
        row = (await self.db.execute(query)).first()
        if row is None:
            raise NotFoundException("Conversation not found")
        return self._to_summary(row)

    async def _require_participant(self, conversation_id: UUID, user_id: UUID) -> None:
        result = await self.db.execute(
            select(conversations.c.user1_id, conversations.c.user2_id).where(
                conversations.c.id == conversation_id
            )
        )
        row = result.first()
        if row is None:
            raise NotFoundException("Conversation not found")
        if user_id not in (row.user1_id, row.user2_id):
            raise ForbiddenException("Access denied to this conversation")

    def _message_query(self):
        return select(
            messages,
            profiles.c.full_name.label("sender_full_name"),
            profiles.c.profile_photo.label("sender_profile_photo"),
        ).select_from(messages.join(profiles, profiles.c.id == messages.c.sender_id))

    @staticmethod
    def _to_message(row) -> MessageRecord:
        mapping = row._mapping
        return MessageRecord(
            id=mapping["id"],
            conversation_id=mapping["conversation_id"],
            sender_id=mapping["sender_id"],
            content=mapping["content"],
            is_read=mapping["is_read"],
            created_at=mapping["created_at"],
            sender=MessageSender(
                full_name=mapping["sender_full_name"],
                profile_photo=mapping["sender_profile_photo"],
            ),
        )

    async def list_messages(self, conversation_id: UUID, user_id: UUID) -> list[MessageRecord]:
        """Return the full message log of a conversation, oldest first."""
        await self._require_participant(conversation_id, user_id)
        query = (
            self._message_query()
            .where(messages.c.conversation_id == conversation_id)
            .order_by(messages.c.created_at.asc(), messages.c.id.asc())
        )
        result = await self.db.execute(query)
        return [self._to_message(row) for row in result]

    async def get_message(self, message_id: UUID, user_id: UUID) -> MessageRecord:
        """Fetch one message with its sender fields, for participants only."""
        row = (
            await self.db.execute(self._message_query().where(messages.c.id == message_id))
        ).first()
        if row is None:
            raise NotFoundException("Message not found")
        await self._require_participant(row.conversation_id, user_id)
        return self._to_message(row)

    async def send_message(
        self, conversation_id: UUID, sender_id: UUID, content: str
    ) -> MessageRecord:
        """
        Append a message to a conversation and announce it on the realtime feed.

        Args:
            conversation_id: Target conversation
            sender_id: Authenticated sender, who must be a participant
            content: Message text, already trimmed and validated

        Returns:
            The persisted message with server id and timestamp
        """
        await self._require_participant(conversation_id, sender_id)

        result = await self.db.execute(
            messages.insert()
            .values(conversation_id=conversation_id, sender_id=sender_id, content=content)
            .returning(messages.c.id)
        )
        message_id = result.scalar_one()

        await self.db.execute(
            update(conversations)
            .where(conversations.c.id == conversation_id)
            .values(updated_at=datetime.now(UTC))
        )
        await self.db.commit()

        logger.info(
            "message_sent",
            conversation_id=str(conversation_id),
            message_id=str(message_id),
            sender_id=str(sender_id),
        )

        if self.redis is not None:
            publish_message_inserted(self.redis, message_id, conversation_id, sender_id)

        row = (
            await self.db.execute(self._message_query().where(messages.c.id == message_id))
        ).first()
        return self._to_message(row)

    async def mark_read(self, conversation_id: UUID, reader_id: UUID) -> int:
        """
        Mark every unread message in a conversation not sent by the reader as read.

        Only ``is_read`` changes; content and ordering are untouched.

        Returns:
            Number of messages updated
        """
        await self._require_participant(conversation_id, reader_id)
        result = await self.db.execute(
            update(messages)
            .where(
                and_(
                    messages.c.conversation_id == conversation_id,
                    messages.c.sender_id != reader_id,
                    messages.c.is_read.is_(False),
                )
            )
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount  # type: ignore[attr-defined]
