"""Profile endpoints."""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, File, Query, UploadFile, status

from healthnet.core.exceptions import NotFoundException
from healthnet.dependencies import (
    ActiveUserId,
    CacheManagerDep,
    CurrentUser,
    DatabaseSession,
    ImageHost,
    Storage,
)
from healthnet.schemas.profiles import (
    PhotoUploadResponse,
    ProfileResponse,
    ProfileStats,
    ProfileUpdate,
)
from healthnet.services.profile_service import ProfileService

router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.get(
    "/me",
    response_model=ProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current user's profile",
)
async def get_my_profile(current_user: CurrentUser) -> ProfileResponse:
    """Get the signed-in user's full profile."""
    return ProfileResponse.model_validate(current_user)


@router.patch(
    "/me",
    response_model=ProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Update current user's profile",
)
async def update_my_profile(
    data: ProfileUpdate,
    user_id: ActiveUserId,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
) -> ProfileResponse:
    """
    Update the signed-in user's profile.

    Only provided fields are updated.
    """
    profile = await ProfileService(cache_manager).update_profile(db, user_id, data)
    if not profile:
        raise NotFoundException("Profile not found")
    return ProfileResponse.model_validate(profile)


@router.post(
    "/me/photo",
    response_model=PhotoUploadResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload profile or cover photo",
)
async def upload_photo(
    user_id: ActiveUserId,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
    image_host: ImageHost,
    file: UploadFile = File(...),
    kind: Literal["profile", "cover"] = Query("profile"),
) -> PhotoUploadResponse:
    """
    Upload a cropped image to the image host and store its URL on the profile.

    Args:
        file: JPEG, PNG, WebP or GIF image
        kind: ``profile`` for the avatar, ``cover`` for the banner
    """
    data = await file.read()
    url = await image_host.upload(data, file.filename or "photo", file.content_type)
    await ProfileService(cache_manager).set_photo(db, user_id, kind, url)
    return PhotoUploadResponse(kind=kind, url=url)


@router.post(
    "/me/deactivate",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate account",
)
async def deactivate_account(
    user_id: ActiveUserId,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
) -> None:
    """Deactivate the account. Signing in again reactivates it."""
    await ProfileService(cache_manager).deactivate_profile(db, user_id)


@router.delete(
    "/me",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete account",
)
async def delete_account(
    user_id: ActiveUserId,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
    storage: Storage,
) -> None:
    """Permanently delete the account and everything it owns."""
    await ProfileService(cache_manager).delete_account(db, user_id, storage)


@router.get(
    "/{profile_id}",
    response_model=ProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Get profile by ID",
)
async def get_profile(
    profile_id: UUID,
    user_id: ActiveUserId,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
) -> ProfileResponse:
    """Get another member's profile and record the view."""
    service = ProfileService(cache_manager)
    profile = await service.get_profile_by_id(db, profile_id)
    if not profile or profile["account_status"] != "active":
        raise NotFoundException("Profile not found")

    await service.record_view(db, profile_id, user_id)
    return ProfileResponse.model_validate(profile)


@router.get(
    "/{profile_id}/stats",
    response_model=ProfileStats,
    status_code=status.HTTP_200_OK,
    summary="Get profile counters",
)
async def get_profile_stats(
    profile_id: UUID,
    user_id: ActiveUserId,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
) -> ProfileStats:
    """Profile view count and Care Team size."""
    service = ProfileService(cache_manager)
    if not await service.get_profile_by_id(db, profile_id):
        raise NotFoundException("Profile not found")
    return await service.get_stats(db, profile_id)
