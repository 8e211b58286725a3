"""Tests for Redis caching implementation."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import redis

from healthnet.core.redis_client import CacheManager
from healthnet.schemas.profiles import ProfileUpdate
from healthnet.services.profile_service import ProfileService


def test_cache_manager_get_json():
    """Test CacheManager get_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    # Test cache miss
    mock_redis.get.return_value = None
    result = cache_manager.get_json("test_key")
    assert result is None
    mock_redis.get.assert_called_once_with("test_key")

    # Test cache hit
    mock_redis.reset_mock()
    mock_redis.get.return_value = '{"full_name": "Dr. Test", "views": 3}'
    result = cache_manager.get_json("test_key")
    assert result == {"full_name": "Dr. Test", "views": 3}


def test_cache_manager_set_json():
    """Test CacheManager set_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.set_json("test_key", {"id": uuid4()}) is True
    mock_redis.set.assert_called_once()

    mock_redis.reset_mock()
    assert cache_manager.set_json("test_key", {"a": 1}, ttl=300) is True
    mock_redis.setex.assert_called_once_with("test_key", 300, '{"a": 1}')


def test_cache_manager_delete_and_exists():
    mock_redis = MagicMock()
    mock_redis.exists.return_value = 1
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.delete("test_key") is True
    mock_redis.delete.assert_called_once_with("test_key")
    assert cache_manager.exists("test_key") is True


def test_cache_manager_tolerates_redis_outage():
    """Cache failures degrade to misses instead of raising."""
    mock_redis = MagicMock()
    mock_redis.get.side_effect = redis.ConnectionError("down")
    mock_redis.set.side_effect = redis.ConnectionError("down")
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.get_json("k") is None
    assert cache_manager.set_json("k", {"a": 1}) is False


def test_refresh_token_revocation_keys():
    mock_redis = MagicMock()
    mock_redis.exists.return_value = 0
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.revoke_token("tok", 60) is True
    mock_redis.setex.assert_called_once_with("blacklist:tok", 60, "1")
    assert cache_manager.is_token_revoked("other") is False
    mock_redis.exists.assert_called_once_with("blacklist:other")

    mock_redis.setex.side_effect = redis.TimeoutError("slow")
    assert cache_manager.revoke_token("tok", 60) is False


def _db_returning(row):
    result = MagicMock()
    result.mappings.return_value.first.return_value = row
    db = MagicMock()
    db.execute = AsyncMock(return_value=result)
    db.commit = AsyncMock()
    return db


async def test_profile_read_from_cache_skips_database():
    profile_id = uuid4()
    cache = MagicMock()
    cache.get_json.return_value = {"id": str(profile_id), "full_name": "Dr. Cached"}
    db = _db_returning(None)

    profile = await ProfileService(cache).get_profile_by_id(db, profile_id)

    assert profile["full_name"] == "Dr. Cached"
    cache.get_json.assert_called_once_with(f"profile:{profile_id}")
    db.execute.assert_not_called()


async def test_profile_cache_miss_populates_cache():
    profile_id = uuid4()
    cache = MagicMock()
    cache.get_json.return_value = None
    db = _db_returning({"id": profile_id, "full_name": "Dr. Fresh"})

    profile = await ProfileService(cache).get_profile_by_id(db, profile_id)

    assert profile["full_name"] == "Dr. Fresh"
    cache.set_json.assert_called_once_with(
        f"profile:{profile_id}", profile, ttl=ProfileService.PROFILE_CACHE_TTL
    )


async def test_profile_update_invalidates_cache():
    profile_id = uuid4()
    cache = MagicMock()
    db = _db_returning({"id": profile_id, "headline": "Cardiologist"})

    profile = await ProfileService(cache).update_profile(
        db, profile_id, ProfileUpdate(headline="Cardiologist")
    )

    assert profile["headline"] == "Cardiologist"
    db.commit.assert_awaited_once()
    cache.delete.assert_called_once_with(f"profile:{profile_id}")
