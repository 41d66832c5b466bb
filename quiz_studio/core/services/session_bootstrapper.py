"""Service that resolves the user's identity before any data access."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum, auto
import logging

from quiz_studio.core.services.document_store import Subscription
from quiz_studio.core.services.identity_provider import AuthError, AuthUser, IdentityProvider

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Progress of identity resolution."""

    PENDING = auto()
    READY = auto()
    FAILED = auto()


class SessionBootstrapper:
    """Signs in with a one-time token if given, otherwise anonymously.

    A rejected token falls back to anonymous sign-in. The session becomes
    ready exactly once; ready listeners run at that moment, or immediately if
    they are added afterwards.
    """

    def __init__(self, identity: IdentityProvider, initial_token: str | None = None) -> None:
        self._identity = identity
        self._initial_token = initial_token or None
        self._state = SessionState.PENDING
        self._user_id: str | None = None
        self._error: str | None = None
        self._ready_listeners: list[Callable[[str], None]] = []
        self._auth_subscription: Subscription | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is SessionState.READY

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def error(self) -> str | None:
        return self._error

    def add_ready_listener(self, listener: Callable[[str], None]) -> None:
        if self.is_ready and self._user_id is not None:
            listener(self._user_id)
            return
        self._ready_listeners.append(listener)

    def start(self) -> SessionState:
        if self._state is not SessionState.PENDING:
            return self._state

        self._auth_subscription = self._identity.on_auth_state_changed(self._handle_auth_change)
        try:
            user = self._resolve_identity()
        except AuthError as exc:
            logger.error("Anonymous sign-in failed: %s", exc)
            self._error = str(exc)
            self._state = SessionState.FAILED
            return self._state

        self._user_id = user.uid
        self._state = SessionState.READY
        logger.info("Session ready for %s (anonymous=%s)", user.uid, user.is_anonymous)
        listeners, self._ready_listeners = self._ready_listeners, []
        for listener in listeners:
            listener(user.uid)
        return self._state

    def close(self) -> None:
        if self._auth_subscription is not None:
            self._auth_subscription.unsubscribe()
            self._auth_subscription = None
        self._ready_listeners.clear()

    def _resolve_identity(self) -> AuthUser:
        if self._initial_token:
            try:
                return self._identity.sign_in_with_custom_token(self._initial_token)
            except AuthError as exc:
                logger.warning("Custom token sign-in failed, falling back to anonymous: %s", exc)
        return self._identity.sign_in_anonymously()

    def _handle_auth_change(self, user: AuthUser | None) -> None:
        # Before readiness the resolved user is assigned by start().
        if self._state is not SessionState.READY:
            return
        self._user_id = user.uid if user is not None else None
        logger.info("Identity changed to %s", self._user_id)
