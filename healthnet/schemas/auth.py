"""Sign-in, token refresh and session schemas."""

from pydantic import BaseModel, EmailStr, Field


class Token(BaseModel):
    """Session token pair issued after a Firebase sign-in."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenRefresh(BaseModel):
    """Body of refresh and logout."""

    refresh_token: str


class FirebaseAuthRequest(BaseModel):
    id_token: str = Field(..., description="Firebase ID token from the web client")


class SessionUser(BaseModel):
    """Identity of the signed-in user."""

    id: str
    email: EmailStr
    name: str
    picture: str | None = None
    account_status: str = "active"

    model_config = {"from_attributes": True}


class LoginResponse(Token):
    """Token pair plus the identity it was issued to."""

    user: SessionUser
    notice: str | None = Field(
        default=None,
        description="User-facing notice, e.g. when a deactivated account was reactivated",
    )
