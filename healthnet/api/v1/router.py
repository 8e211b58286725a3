"""API v1 router configuration."""

from fastapi import APIRouter

from healthnet.api.v1.endpoints import (
    auth,
    care_team,
    conversations,
    health,
    jobs,
    posts,
    profiles,
    storage,
)

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(profiles.router)
api_router.include_router(care_team.router)
api_router.include_router(posts.router)
api_router.include_router(jobs.router)
api_router.include_router(conversations.router, tags=["Messaging"])
api_router.include_router(storage.router)
