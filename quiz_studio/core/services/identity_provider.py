"""Identity providers used to sign the user in."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
import json
import logging
from pathlib import Path
from threading import RLock
from uuid import uuid4

from quiz_studio.core.services.document_store import Subscription

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when signing in fails."""


@dataclass(frozen=True, slots=True)
class AuthUser:
    """The signed-in user."""

    uid: str
    is_anonymous: bool


AuthStateCallback = Callable[[AuthUser | None], None]


class IdentityProvider(ABC):
    """Operations the session bootstrapper consumes."""

    @abstractmethod
    def sign_in_with_custom_token(self, token: str) -> AuthUser:
        """Exchange a one-time token for a session."""

    @abstractmethod
    def sign_in_anonymously(self) -> AuthUser:
        """Sign in anonymously, reusing a persisted session if one exists."""

    @abstractmethod
    def on_auth_state_changed(self, callback: AuthStateCallback) -> Subscription:
        """Call ``callback`` with the current user now and on every change."""

    @property
    @abstractmethod
    def current_user(self) -> AuthUser | None:
        """The signed-in user, if any."""


class LocalIdentityProvider(IdentityProvider):
    """Identity provider backed by a static token table.

    Custom tokens are single-use. When ``session_file`` is given the signed-in
    user is written there so that a later anonymous sign-in resumes it.
    """

    SESSION_FILE_NAME = "session.json"

    def __init__(
        self,
        custom_tokens: Mapping[str, str] | None = None,
        session_file: Path | None = None,
    ) -> None:
        self._lock = RLock()
        self._custom_tokens = dict(custom_tokens or {})
        self._used_tokens: set[str] = set()
        self._session_file = session_file
        self._user: AuthUser | None = self._restore_session()
        self._listeners: list[AuthStateCallback] = []

    @property
    def current_user(self) -> AuthUser | None:
        with self._lock:
            return self._user

    def sign_in_with_custom_token(self, token: str) -> AuthUser:
        with self._lock:
            uid = self._custom_tokens.get(token)
            if uid is None:
                raise AuthError("Custom token is not recognised.")
            if token in self._used_tokens:
                raise AuthError("Custom token has already been used.")
            self._used_tokens.add(token)
            user = AuthUser(uid=uid, is_anonymous=False)
        self._set_user(user)
        return user

    def sign_in_anonymously(self) -> AuthUser:
        with self._lock:
            existing = self._user
        if existing is not None:
            return existing
        user = AuthUser(uid=f"anon-{uuid4().hex}", is_anonymous=True)
        self._set_user(user)
        return user

    def sign_out(self) -> None:
        self._set_user(None)

    def on_auth_state_changed(self, callback: AuthStateCallback) -> Subscription:
        with self._lock:
            self._listeners.append(callback)
            user = self._user
        callback(user)

        def release() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return Subscription(release)

    def _set_user(self, user: AuthUser | None) -> None:
        with self._lock:
            self._user = user
            self._save_session(user)
            listeners = list(self._listeners)
        for listener in listeners:
            listener(user)

    def _restore_session(self) -> AuthUser | None:
        if self._session_file is None or not self._session_file.exists():
            return None
        try:
            data = json.loads(self._session_file.read_text(encoding="utf-8"))
            user = AuthUser(uid=str(data["uid"]), is_anonymous=bool(data.get("isAnonymous", True)))
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", self._session_file, exc)
            return None
        logger.info("Restored session for %s", user.uid)
        return user

    def _save_session(self, user: AuthUser | None) -> None:
        if self._session_file is None:
            return
        try:
            if user is None:
                self._session_file.unlink(missing_ok=True)
                return
            self._session_file.parent.mkdir(parents=True, exist_ok=True)
            self._session_file.write_text(
                json.dumps({"uid": user.uid, "isAnonymous": user.is_anonymous}),
                encoding="utf-8",
            )
        except OSError as exc:
            logger.warning("Could not persist session: %s", exc)
