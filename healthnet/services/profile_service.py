"""Profile service for business logic."""

from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from healthnet.core.redis_client import CacheManager, profile_key
from healthnet.models.care_team import care_team
from healthnet.models.jobs import job_applications, jobs
from healthnet.models.profiles import profile_views, profiles
from healthnet.schemas.profiles import ProfileCreate, ProfileStats, ProfileUpdate
from healthnet.services.storage_service import StorageService

logger = structlog.get_logger(__name__)


class ProfileService:
    """Service for profile operations."""

    # Cache TTL in seconds (30 minutes for profiles)
    PROFILE_CACHE_TTL = 1800

    def __init__(self, cache_manager: CacheManager | None = None):
        """Initialize service with optional cache manager."""
        self.cache = cache_manager

    def _invalidate(self, profile_id: UUID) -> None:
        if self.cache:
            self.cache.delete(profile_key(profile_id))

    async def create_profile(self, db: AsyncSession, data: ProfileCreate) -> dict:
        """Create the profile of a user signing in for the first time."""
        query = (
            profiles.insert()
            .values(
                firebase_uid=data.firebase_uid,
                email=data.email,
                full_name=data.full_name,
                profile_photo=data.profile_photo,
                last_login_at=datetime.now(UTC),
            )
            .returning(profiles)
        )

        result = await db.execute(query)
        await db.commit()
        profile = result.mappings().first()

        if not profile:
            raise ValueError("Failed to create profile")

        logger.info("profile_created", profile_id=str(profile["id"]))
        return dict(profile)

    async def get_profile_by_id(self, db: AsyncSession, profile_id: UUID) -> dict | None:
        """Get profile by ID with caching."""
        if self.cache:
            cached = self.cache.get_json(profile_key(profile_id))
            if cached:
                return cached

        result = await db.execute(select(profiles).where(profiles.c.id == profile_id))
        profile = result.mappings().first()

        if not profile:
            return None

        profile_dict = dict(profile)

        if self.cache:
            self.cache.set_json(
                profile_key(profile_id),
                profile_dict,
                ttl=self.PROFILE_CACHE_TTL,
            )

        return profile_dict

    async def get_profile_by_firebase_uid(
        self, db: AsyncSession, firebase_uid: str
    ) -> dict | None:
        """Get profile by Firebase UID."""
        result = await db.execute(select(profiles).where(profiles.c.firebase_uid == firebase_uid))
        profile = result.mappings().first()
        return dict(profile) if profile else None

    async def get_or_create_profile(self, db: AsyncSession, data: ProfileCreate) -> dict:
        """Get the profile for a Firebase identity, creating it on first login."""
        profile = await self.get_profile_by_firebase_uid(db, data.firebase_uid)

        if profile:
            await self.update_last_login(db, profile["id"])
            return profile

        return await self.create_profile(db, data)

    async def update_profile(
        self, db: AsyncSession, profile_id: UUID, data: ProfileUpdate
    ) -> dict | None:
        """Update the owner's profile."""
        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            return await self.get_profile_by_id(db, profile_id)

        return await self._update(db, profile_id, **update_data)

    async def set_photo(
        self, db: AsyncSession, profile_id: UUID, kind: str, url: str
    ) -> dict | None:
        """Store the hosted URL of a profile or cover photo."""
        column = "profile_photo" if kind == "profile" else "cover_photo"
        return await self._update(db, profile_id, **{column: url})

    async def _update(self, db: AsyncSession, profile_id: UUID, **values: object) -> dict | None:
        values["updated_at"] = datetime.now(UTC)
        query = (
            update(profiles).where(profiles.c.id == profile_id).values(**values).returning(profiles)
        )

        result = await db.execute(query)
        await db.commit()
        profile = result.mappings().first()

        self._invalidate(profile_id)

        return dict(profile) if profile else None

    async def update_last_login(self, db: AsyncSession, profile_id: UUID) -> None:
        """Update the profile's last login timestamp."""
        await db.execute(
            update(profiles)
            .where(profiles.c.id == profile_id)
            .values(last_login_at=datetime.now(UTC))
        )
        await db.commit()
        self._invalidate(profile_id)

    async def record_view(self, db: AsyncSession, profile_id: UUID, viewer_id: UUID) -> bool:
        """Record that another member opened a profile. Owners viewing themselves are ignored."""
        if profile_id == viewer_id:
            return False

        await db.execute(insert(profile_views).values(profile_id=profile_id, viewer_id=viewer_id))
        await db.commit()
        return True

    async def get_stats(self, db: AsyncSession, profile_id: UUID) -> ProfileStats:
        """Count profile views and accepted Care Team connections."""
        views = await db.scalar(
            select(func.count())
            .select_from(profile_views)
            .where(profile_views.c.profile_id == profile_id)
        )
        connections = await db.scalar(
            select(func.count())
            .select_from(care_team)
            .where(
                or_(
                    care_team.c.requester_id == profile_id,
                    care_team.c.receiver_id == profile_id,
                ),
                care_team.c.status == "accepted",
            )
        )
        return ProfileStats(profile_views=views or 0, care_team_count=connections or 0)

    async def deactivate_profile(self, db: AsyncSession, profile_id: UUID) -> dict | None:
        """Deactivate an account; the next login reactivates it."""
        return await self._update(
            db,
            profile_id,
            account_status="deactivated",
            deactivated_at=datetime.now(UTC),
        )

    async def reactivate_profile(self, db: AsyncSession, profile_id: UUID) -> dict | None:
        """Reactivate a deactivated account."""
        return await self._update(
            db,
            profile_id,
            account_status="active",
            deactivated_at=None,
        )

    async def delete_account(
        self,
        db: AsyncSession,
        profile_id: UUID,
        storage: StorageService | None = None,
    ) -> bool:
        """
        Erase an account and everything it owns.

        Posts, likes, comments, Care Team relations, jobs, applications,
        conversations and their messages are removed by the foreign key
        cascades on ``profiles``. Stored resumes go too: the user's own, and
        those attached to applications for jobs the user posted.

        Returns:
            True if the profile existed
        """
        result = await db.execute(
            select(job_applications.c.resume_path).where(
                job_applications.c.resume_path.is_not(None),
                or_(
                    job_applications.c.applicant_id == profile_id,
                    job_applications.c.job_id.in_(
                        select(jobs.c.id).where(jobs.c.employer_id == profile_id)
                    ),
                ),
            )
        )
        resume_paths = [row.resume_path for row in result]

        result = await db.execute(delete(profiles).where(profiles.c.id == profile_id))
        await db.commit()
        self._invalidate(profile_id)

        if storage:
            for path in resume_paths:
                storage.delete(path)

        deleted = result.rowcount > 0  # type: ignore[attr-defined]
        logger.info("account_deleted", profile_id=str(profile_id), deleted=deleted)
        return deleted
