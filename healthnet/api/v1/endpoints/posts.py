"""Post feed endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from healthnet.dependencies import ActiveUserId, DatabaseSession
from healthnet.schemas.posts import (
    CommentCreate,
    CommentResponse,
    LikeToggleResponse,
    PostCreate,
    PostResponse,
)
from healthnet.services.post_service import PostService

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.get("", response_model=list[PostResponse], summary="Get feed")
async def list_feed(
    user_id: ActiveUserId,
    db: DatabaseSession,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> list[PostResponse]:
    """Newest posts first, with like and comment counters."""
    return await PostService(db).list_feed(user_id, limit, offset)


@router.post(
    "",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create post",
)
async def create_post(data: PostCreate, user_id: ActiveUserId, db: DatabaseSession) -> PostResponse:
    """Publish a post of up to 3000 characters."""
    return await PostService(db).create_post(user_id, data.content)


@router.get("/{post_id}", response_model=PostResponse, summary="Get post")
async def get_post(post_id: UUID, user_id: ActiveUserId, db: DatabaseSession) -> PostResponse:
    return await PostService(db).get_post(post_id, user_id)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete post")
async def delete_post(post_id: UUID, user_id: ActiveUserId, db: DatabaseSession) -> None:
    """Delete one of the current user's posts."""
    await PostService(db).delete_post(post_id, user_id)


@router.post("/{post_id}/like", response_model=LikeToggleResponse, summary="Toggle like")
async def toggle_like(
    post_id: UUID,
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> LikeToggleResponse:
    """Like the post, or remove the current user's like."""
    return await PostService(db).toggle_like(post_id, user_id)


@router.get(
    "/{post_id}/comments",
    response_model=list[CommentResponse],
    summary="List comments",
)
async def list_comments(
    post_id: UUID,
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> list[CommentResponse]:
    return await PostService(db).list_comments(post_id)


@router.post(
    "/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add comment",
)
async def add_comment(
    post_id: UUID,
    data: CommentCreate,
    user_id: ActiveUserId,
    db: DatabaseSession,
) -> CommentResponse:
    return await PostService(db).add_comment(post_id, user_id, data.content)
