"""Explicit session context shared by the client and the message views."""

from collections.abc import Awaitable, Callable
from uuid import UUID

import structlog

from healthnet.messaging.errors import SessionExpired
from healthnet.schemas.auth import Token

logger = structlog.get_logger(__name__)

SessionListener = Callable[["Session"], None]
Refresher = Callable[[str], Awaitable[Token]]


class Session:
    """
    The signed-in user and their tokens.

    A session is created once after login and handed to every controller.
    Listeners registered with ``subscribe`` are told whenever the tokens are
    refreshed or the session ends, which is where a UI redirects to login.
    """

    def __init__(self, user_id: UUID, access_token: str, refresh_token: str | None = None):
        self.user_id = user_id
        self.access_token: str | None = access_token
        self.refresh_token = refresh_token
        self._listeners: list[SessionListener] = []

    @property
    def signed_in(self) -> bool:
        return self.access_token is not None

    def authorization_header(self) -> dict[str, str]:
        """Bearer header for the current access token."""
        if self.access_token is None:
            raise SessionExpired()
        return {"Authorization": f"Bearer {self.access_token}"}

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def refresh(self, refresher: Refresher) -> None:
        """
        Exchange the refresh token for a new token pair.

        Raises:
            SessionExpired: If there is no refresh token or the exchange fails
        """
        if self.refresh_token is None:
            self.sign_out()
            raise SessionExpired()

        try:
            tokens = await refresher(self.refresh_token)
        except SessionExpired:
            self.sign_out()
            raise

        self.access_token = tokens.access_token
        self.refresh_token = tokens.refresh_token
        logger.info("session_refreshed", user_id=str(self.user_id))
        self._notify()

    def sign_out(self) -> None:
        """Forget the tokens and notify listeners."""
        if self.access_token is None and self.refresh_token is None:
            return
        self.access_token = None
        self.refresh_token = None
        logger.info("session_ended", user_id=str(self.user_id))
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
