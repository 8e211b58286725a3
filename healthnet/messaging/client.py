"""HTTP client for the messaging API."""

from typing import Any
from uuid import UUID

import httpx
import structlog

from healthnet.messaging.config import get_client_settings
from healthnet.messaging.errors import ClientError, SessionExpired
from healthnet.messaging.session import Session
from healthnet.schemas.auth import Token
from healthnet.schemas.messaging import ConversationSummary, MessageRecord

logger = structlog.get_logger(__name__)


class HealthNetClient:
    """
    Thin async client over the HealthNet HTTP API.

    Every call carries the session's bearer token and the configured timeout.
    Transport failures and error responses are raised as ``ClientError``; a
    401 ends the session and is raised as ``SessionExpired``.
    """

    def __init__(
        self,
        session: Session,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_client_settings()
        self.session = session
        self._http = httpx.AsyncClient(
            base_url=(base_url or settings.api_url).rstrip("/"),
            timeout=settings.timeout if timeout is None else timeout,
            transport=transport,
        )
        self._prefix = settings.api_prefix

    async def __aenter__(self) -> "HealthNetClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        authenticated: bool = True,
        prefixed: bool = True,
        **kwargs: Any,
    ) -> Any:
        headers = self.session.authorization_header() if authenticated else {}
        url = f"{self._prefix}{path}" if prefixed else path

        try:
            response = await self._http.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("api_request_timeout", method=method, path=path)
            raise ClientError("The server took too long to respond") from e
        except httpx.HTTPError as e:
            logger.warning("api_request_failed", method=method, path=path, error=str(e))
            raise ClientError("Could not reach the server") from e

        if response.status_code == 401 and authenticated:
            self.session.sign_out()
            raise SessionExpired()

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "api_error_response",
                method=method,
                path=path,
                status_code=response.status_code,
                message=message,
            )
            if response.status_code == 401:
                raise SessionExpired(message)
            raise ClientError(message, status_code=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # Session

    async def refresh_tokens(self, refresh_token: str) -> Token:
        """Exchange a refresh token; used as the session's refresher."""
        data = await self._request(
            "POST",
            "/auth/refresh",
            authenticated=False,
            json={"refresh_token": refresh_token},
        )
        return Token.model_validate(data)

    async def sign_out(self) -> None:
        """Revoke the refresh token on the server, then end the local session."""
        refresh_token = self.session.refresh_token
        try:
            if refresh_token is not None:
                await self._request(
                    "POST",
                    "/auth/logout",
                    authenticated=False,
                    json={"refresh_token": refresh_token},
                )
        finally:
            self.session.sign_out()

    # Conversations

    async def list_conversations(self) -> list[ConversationSummary]:
        data = await self._request("GET", "/conversations")
        return [ConversationSummary.model_validate(item) for item in data]

    async def get_or_create_conversation(self, other_user_id: UUID) -> ConversationSummary:
        """Atomic get-or-create of the conversation with another user."""
        data = await self._request(
            "POST", "/conversations", json={"other_user_id": str(other_user_id)}
        )
        return ConversationSummary.model_validate(data)

    async def start_conversation(self, other_user_id: UUID) -> UUID:
        """Same as ``get_or_create_conversation``, through the server-context endpoint."""
        data = await self._request(
            "POST",
            "/api/start-conversation",
            prefixed=False,
            json={
                "currentUserId": str(self.session.user_id),
                "otherUserId": str(other_user_id),
            },
        )
        return UUID(data["conversationId"])

    # Messages

    async def list_messages(self, conversation_id: UUID) -> list[MessageRecord]:
        data = await self._request("GET", f"/conversations/{conversation_id}/messages")
        return [MessageRecord.model_validate(item) for item in data]

    async def get_message(self, message_id: UUID) -> MessageRecord:
        data = await self._request("GET", f"/messages/{message_id}")
        return MessageRecord.model_validate(data)

    async def send_message(self, conversation_id: UUID, content: str) -> MessageRecord:
        data = await self._request(
            "POST",
            f"/conversations/{conversation_id}/messages",
            json={"content": content},
        )
        return MessageRecord.model_validate(data)

    async def mark_read(self, conversation_id: UUID) -> int:
        """Mark the other participant's messages read; returns how many changed."""
        data = await self._request("POST", f"/conversations/{conversation_id}/read")
        return int(data["updated"])


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("detail") or body)
    return str(body)
