"""Post service: feed, likes and comments."""

from uuid import UUID

import structlog
from sqlalchemy import delete, exists, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from healthnet.core.exceptions import ForbiddenException, NotFoundException
from healthnet.models.posts import comments, likes, posts
from healthnet.models.profiles import profiles
from healthnet.schemas.posts import CommentResponse, LikeToggleResponse, PostResponse
from healthnet.services.joins import profile_summary, profile_summary_columns, strip_prefixed

logger = structlog.get_logger(__name__)


class PostService:
    """Service for the post feed."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    def _post_query(self, viewer_id: UUID):
        like_count = (
            select(func.count())
            .select_from(likes)
            .where(likes.c.post_id == posts.c.id)
            .scalar_subquery()
        )
        comment_count = (
            select(func.count())
            .select_from(comments)
            .where(comments.c.post_id == posts.c.id)
            .scalar_subquery()
        )
        liked_by_me = exists().where(likes.c.post_id == posts.c.id, likes.c.user_id == viewer_id)
        return select(
            posts,
            like_count.label("like_count"),
            comment_count.label("comment_count"),
            liked_by_me.label("liked_by_me"),
            *profile_summary_columns(profiles, "author"),
        ).select_from(posts.join(profiles, profiles.c.id == posts.c.user_id))

    @staticmethod
    def _to_post(row) -> PostResponse:
        return PostResponse(
            **strip_prefixed(row._mapping, "author"),
            author=profile_summary(row._mapping, "author"),
        )

    async def list_feed(self, viewer_id: UUID, limit: int = 20, offset: int = 0) -> list[PostResponse]:
        """Return the newest posts with engagement counters."""
        query = (
            self._post_query(viewer_id)
            .order_by(posts.c.created_at.desc(), posts.c.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(query)
        return [self._to_post(row) for row in result]

    async def get_post(self, post_id: UUID, viewer_id: UUID) -> PostResponse:
        """Get a single post."""
        row = (
            await self.db.execute(self._post_query(viewer_id).where(posts.c.id == post_id))
        ).first()
        if row is None:
            raise NotFoundException("Post not found")
        return self._to_post(row)

    async def create_post(self, user_id: UUID, content: str) -> PostResponse:
        """Publish a post; content is already trimmed and length-checked."""
        result = await self.db.execute(
            posts.insert().values(user_id=user_id, content=content).returning(posts.c.id)
        )
        post_id = result.scalar_one()
        await self.db.commit()
        logger.info("post_created", post_id=str(post_id), user_id=str(user_id))
        return await self.get_post(post_id, user_id)

    async def delete_post(self, post_id: UUID, user_id: UUID) -> None:
        """Delete a post owned by the user."""
        owner_id = await self.db.scalar(select(posts.c.user_id).where(posts.c.id == post_id))
        if owner_id is None:
            raise NotFoundException("Post not found")
        if owner_id != user_id:
            raise ForbiddenException("You can only delete your own posts")

        await self.db.execute(delete(posts).where(posts.c.id == post_id))
        await self.db.commit()

    async def toggle_like(self, post_id: UUID, user_id: UUID) -> LikeToggleResponse:
        """Like a post, or remove the like if it already exists."""
        await self._require_post(post_id)

        removed = await self.db.execute(
            delete(likes).where(likes.c.post_id == post_id, likes.c.user_id == user_id)
        )
        liked = removed.rowcount == 0  # type: ignore[attr-defined]
        if liked:
            await self.db.execute(
                insert(likes).values(post_id=post_id, user_id=user_id).on_conflict_do_nothing()
            )
        await self.db.commit()

        like_count = await self.db.scalar(
            select(func.count()).select_from(likes).where(likes.c.post_id == post_id)
        )
        return LikeToggleResponse(post_id=post_id, liked=liked, like_count=like_count or 0)

    async def list_comments(self, post_id: UUID) -> list[CommentResponse]:
        """List a post's comments in creation order."""
        await self._require_post(post_id)
        query = (
            select(comments, *profile_summary_columns(profiles, "author"))
            .select_from(comments.join(profiles, profiles.c.id == comments.c.user_id))
            .where(comments.c.post_id == post_id)
            .order_by(comments.c.created_at.asc(), comments.c.id.asc())
        )
        result = await self.db.execute(query)
        return [
            CommentResponse(
                **strip_prefixed(row._mapping, "author"),
                author=profile_summary(row._mapping, "author"),
            )
            for row in result
        ]

    async def add_comment(self, post_id: UUID, user_id: UUID, content: str) -> CommentResponse:
        """Comment on a post."""
        await self._require_post(post_id)
        result = await self.db.execute(
            comments.insert()
            .values(post_id=post_id, user_id=user_id, content=content)
            .returning(comments.c.id)
        )
        comment_id = result.scalar_one()
        await self.db.commit()

        row = (
            await self.db.execute(
                select(comments, *profile_summary_columns(profiles, "author"))
                .select_from(comments.join(profiles, profiles.c.id == comments.c.user_id))
                .where(comments.c.id == comment_id)
            )
        ).first()
        return CommentResponse(
            **strip_prefixed(row._mapping, "author"),
            author=profile_summary(row._mapping, "author"),
        )

    async def _require_post(self, post_id: UUID) -> None:
        found = await self.db.scalar(select(posts.c.id).where(posts.c.id == post_id))
        if found is None:
            raise NotFoundException("Post not found")
