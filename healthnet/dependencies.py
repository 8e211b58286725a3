"""FastAPI dependencies."""

from typing import Annotated
from uuid import UUID

import redis
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from healthnet.core.redis_client import CacheManager, get_redis_client
from healthnet.core.security import decode_access_token
from healthnet.database import get_db
from healthnet.services.image_host import ImageHostClient
from healthnet.services.profile_service import ProfileService
from healthnet.services.storage_service import StorageService

# Security
security = HTTPBearer()


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> UUID:
    """
    Extract and validate user ID from JWT token.

    Raises:
        HTTPException: If token is invalid or expired
    """
    payload = decode_access_token(credentials.credentials)

    if payload is None:
        raise _credentials_error()

    user_id_str = payload.get("sub")
    if user_id_str is None or not isinstance(user_id_str, str):
        raise _credentials_error()

    try:
        return UUID(user_id_str)
    except ValueError:
        raise _credentials_error("Invalid user ID format")


def get_cache_manager(
    redis_client: Annotated[redis.Redis, Depends(get_redis_client)],
) -> CacheManager:
    """Cache manager over the shared Redis client."""
    return CacheManager(redis_client)


async def get_current_user(
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    cache_manager: Annotated[CacheManager, Depends(get_cache_manager)],
) -> dict:
    """
    Get the current user's profile.

    Raises:
        HTTPException: If the profile is missing or the account is not active
    """
    profile = await ProfileService(cache_manager).get_profile_by_id(db, user_id)

    if not profile:
        raise _credentials_error("User not found")

    if profile["account_status"] != "active":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is not active",
        )

    return profile


async def get_active_user_id(
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    _profile: Annotated[dict, Depends(get_current_user)],
) -> UUID:
    """ID of the current user, once their profile is known to be active."""
    return user_id


def get_storage() -> StorageService:
    """Object storage rooted at the configured directory."""
    return StorageService()


def get_image_host() -> ImageHostClient:
    """Client for the image hosting endpoint."""
    return ImageHostClient()


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]
CurrentUser = Annotated[dict, Depends(get_current_user)]
ActiveUserId = Annotated[UUID, Depends(get_active_user_id)]
RedisClient = Annotated[redis.Redis, Depends(get_redis_client)]
CacheManagerDep = Annotated[CacheManager, Depends(get_cache_manager)]
Storage = Annotated[StorageService, Depends(get_storage)]
ImageHost = Annotated[ImageHostClient, Depends(get_image_host)]
