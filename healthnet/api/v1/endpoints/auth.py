"""Authentication endpoints."""

from fastapi import APIRouter, status

from healthnet.dependencies import CacheManagerDep, CurrentUser, DatabaseSession
from healthnet.schemas.auth import (
    FirebaseAuthRequest,
    LoginResponse,
    SessionUser,
    Token,
    TokenRefresh,
)
from healthnet.services.auth_service import AuthService

router = APIRouter()


def _session_user(profile: dict) -> SessionUser:
    return SessionUser(
        id=str(profile["id"]),
        email=profile["email"],
        name=profile["full_name"] or profile["email"],
        picture=profile["profile_photo"],
        account_status=profile["account_status"],
    )


@router.post(
    "/firebase/verify",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    tags=["Authentication"],
    summary="Firebase ID token verification",
)
async def firebase_verify(
    request: FirebaseAuthRequest,
    db: DatabaseSession,
    cache_manager: CacheManagerDep,
) -> LoginResponse:
    """
    Verify a Firebase ID token and return JWT tokens.

    The web client signs in with Firebase and sends the ID token here. The
    profile is created on first login, a deactivated account is reactivated,
    and a deleted account is refused.

    Returns:
        Access token, refresh token, and the signed-in identity
    """
    auth_service = AuthService(cache_manager)

    firebase_token_data = await auth_service.verify_firebase_id_token(request.id_token)
    profile, tokens, notice = await auth_service.handle_firebase_login(firebase_token_data, db)

    return LoginResponse(**tokens.model_dump(), user=_session_user(profile), notice=notice)


@router.post(
    "/refresh",
    response_model=Token,
    status_code=status.HTTP_200_OK,
    tags=["Authentication"],
    summary="Refresh access token",
)
async def refresh_token(request: TokenRefresh, cache_manager: CacheManagerDep) -> Token:
    """Exchange a valid refresh token for a new token pair."""
    return AuthService(cache_manager).refresh_access_token(request.refresh_token)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Authentication"],
    summary="Sign out and revoke tokens",
)
async def logout(request: TokenRefresh, cache_manager: CacheManagerDep) -> None:
    """Sign out by revoking the refresh token."""
    AuthService(cache_manager).revoke_token(request.refresh_token)


@router.get(
    "/me",
    response_model=SessionUser,
    status_code=status.HTTP_200_OK,
    tags=["Authentication"],
    summary="Current identity",
)
async def me(current_user: CurrentUser) -> SessionUser:
    """Return the signed-in user, or 401 when there is no valid session."""
    return _session_user(current_user)
