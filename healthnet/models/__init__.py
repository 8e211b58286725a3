"""Database models."""

from healthnet.models.base import metadata
from healthnet.models.care_team import care_team
from healthnet.models.conversations import conversations, messages
from healthnet.models.jobs import job_applications, jobs
from healthnet.models.posts import comments, likes, posts
from healthnet.models.profiles import profile_views, profiles

__all__ = [
    "care_team",
    "comments",
    "conversations",
    "job_applications",
    "jobs",
    "likes",
    "messages",
    "metadata",
    "posts",
    "profile_views",
    "profiles",
]
