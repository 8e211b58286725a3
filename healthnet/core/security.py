"""Security utilities for JWT session and signed storage tokens."""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from healthnet.config import settings


def _encode(data: dict[str, Any], expire: datetime, token_type: str) -> str:
    to_encode = data.copy()
    to_encode.update(
        {
            "exp": expire,
            "iat": datetime.now(UTC),
            "type": token_type,
        }
    )
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def _decode(token: str, token_type: str) -> dict[str, Any] | None:
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    # Verify token type
    if payload.get("type") != token_type:
        return None

    return payload


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token
    """
    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)

    return _encode(data, expire, "access")


def create_refresh_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT refresh token.

    Args:
        data: Payload data to encode
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT refresh token
    """
    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(days=settings.refresh_token_expire_days)

    return _encode(data, expire, "refresh")


def create_storage_token(path: str, ttl_seconds: int) -> str:
    """
    Create a short-lived token granting read access to one stored object.

    Args:
        path: Object path relative to the storage root
        ttl_seconds: Lifetime of the token

    Returns:
        Encoded JWT storage token
    """
    expire = datetime.now(UTC) + timedelta(seconds=ttl_seconds)
    return _encode({"path": path}, expire, "storage")


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a JWT access token, returning None if invalid."""
    return _decode(token, "access")


def decode_refresh_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a JWT refresh token, returning None if invalid."""
    return _decode(token, "refresh")


def decode_storage_token(token: str) -> str | None:
    """Return the object path a storage token grants access to, or None."""
    payload = _decode(token, "storage")
    if payload is None:
        return None
    path = payload.get("path")
    return path if isinstance(path, str) else None
