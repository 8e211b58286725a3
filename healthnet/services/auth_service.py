"""Authentication service for Firebase and JWT."""

from datetime import UTC, datetime, timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from healthnet.config import settings
from healthnet.core.exceptions import UnauthorizedException
from healthnet.core.firebase import verify_firebase_token
from healthnet.core.redis_client import CacheManager
from healthnet.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
)
from healthnet.schemas.auth import Token
from healthnet.schemas.profiles import ProfileCreate
from healthnet.services.profile_service import ProfileService

logger = structlog.get_logger(__name__)

REACTIVATED_NOTICE = "Welcome back! Your account has been reactivated."


class AuthService:
    """Authentication service for handling Firebase and JWT operations."""

    def __init__(self, cache_manager: CacheManager):
        """Initialize auth service with cache manager."""
        self.cache = cache_manager

    async def verify_firebase_id_token(self, id_token: str) -> dict:
        """
        Verify Firebase ID token and extract user information.

        Raises:
            UnauthorizedException: If token verification fails
        """
        try:
            return await verify_firebase_token(id_token)
        except ValueError as e:
            raise UnauthorizedException(str(e)) from e

    async def handle_firebase_login(
        self, firebase_token_data: dict, db: AsyncSession
    ) -> tuple[dict, Token, str | None]:
        """
        Handle Firebase login: get or create the profile and issue tokens.

        A deactivated account is reactivated on login; a deleted one is refused.

        Args:
            firebase_token_data: Decoded Firebase token with user info
            db: Database session

        Returns:
            Tuple of (profile dict, token pair, optional user-facing notice)
        """
        firebase_uid = firebase_token_data["uid"]
        email = firebase_token_data.get("email")

        if not email:
            raise UnauthorizedException("Email is required from Firebase token")

        profile_service = ProfileService(self.cache)
        profile = await profile_service.get_or_create_profile(
            db,
            ProfileCreate(
                firebase_uid=firebase_uid,
                email=email,
                full_name=firebase_token_data.get("name"),
                profile_photo=firebase_token_data.get("picture"),
            ),
        )

        notice = None
        if profile["account_status"] == "deleted":
            raise UnauthorizedException("This account has been deleted.")
        if profile["account_status"] == "deactivated":
            profile = await profile_service.reactivate_profile(db, profile["id"]) or profile
            notice = REACTIVATED_NOTICE
            logger.info("account_reactivated", profile_id=str(profile["id"]))

        tokens = self.create_tokens(str(profile["id"]))
        return profile, tokens, notice

    def create_tokens(self, user_id: str) -> Token:
        claims = {"sub": user_id}
        return Token(
            access_token=create_access_token(
                claims, timedelta(minutes=settings.access_token_expire_minutes)
            ),
            refresh_token=create_refresh_token(
                claims, timedelta(days=settings.refresh_token_expire_days)
            ),
        )

    def refresh_access_token(self, refresh_token: str) -> Token:
        """
        Create new access token from refresh token.

        Raises:
            UnauthorizedException: If refresh token is invalid or revoked
        """
        payload = decode_refresh_token(refresh_token)

        if payload is None:
            raise UnauthorizedException("Invalid refresh token")

        user_id = payload.get("sub")
        if user_id is None:
            raise UnauthorizedException("Invalid refresh token")

        if self.cache.is_token_revoked(refresh_token):
            raise UnauthorizedException("Token has been revoked")

        return self.create_tokens(user_id)

    def revoke_token(self, token: str) -> None:
        """
        Blacklist a refresh token until it would have expired anyway.

        Tokens that no longer decode are already unusable and are ignored.
        """
        payload = decode_refresh_token(token)
        if payload is None:
            return
        remaining = int(payload["exp"] - datetime.now(UTC).timestamp())
        if remaining > 0:
            self.cache.revoke_token(token, remaining)
