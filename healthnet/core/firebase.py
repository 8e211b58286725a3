"""Firebase Admin setup and verification of the ID tokens clients sign in with."""

import asyncio
import json
from pathlib import Path

import firebase_admin
import structlog
from firebase_admin import auth, credentials, exceptions

from healthnet.config import settings

logger = structlog.get_logger(__name__)

# Tolerated clock drift between Firebase and this server, in seconds
CLOCK_SKEW_SECONDS = 10


def load_credentials(
    credentials_path: str | None, config_json: str | None
) -> credentials.Certificate | None:
    """
    Service account credentials, preferring raw JSON over a file path.

    Returns None when neither is configured, in which case the SDK falls back
    to Application Default Credentials.
    """
    if config_json:
        return credentials.Certificate(json.loads(config_json))
    if credentials_path and Path(credentials_path).is_file():
        return credentials.Certificate(credentials_path)
    return None


def initialize_firebase(
    credentials_path: str | None = None, config_json: str | None = None
) -> firebase_admin.App:
    """Initialize the default Firebase app once; later calls return it unchanged."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    cred = load_credentials(
        credentials_path or settings.firebase_credentials_path,
        config_json or settings.firebase_config_json,
    )
    app = firebase_admin.initialize_app(cred)
    logger.info(
        "firebase_initialized",
        project_id=app.project_id,
        source="service_account" if cred else "default_credentials",
    )
    return app


async def verify_firebase_token(id_token: str) -> dict:
    """
    Decode a Firebase ID token.

    Verification may fetch Google's signing keys, so it runs off the event
    loop.

    Raises:
        ValueError: The token is malformed, expired, revoked or unverifiable
    """
    try:
        decoded = await asyncio.to_thread(
            auth.verify_id_token, id_token, clock_skew_seconds=CLOCK_SKEW_SECONDS
        )
    except (auth.InvalidIdTokenError, auth.UserDisabledError) as e:
        logger.warning("firebase_token_rejected", error=str(e))
        raise ValueError(f"Invalid Firebase ID token: {e!s}") from e
    except (ValueError, exceptions.FirebaseError) as e:
        logger.error("firebase_token_verification_failed", error=str(e))
        raise ValueError(f"Token verification failed: {e!s}") from e

    logger.info("firebase_token_verified", uid=decoded.get("uid"))
    return decoded
