"""Auth collaborator contract and a single-account local provider."""

from __future__ import annotations

import hmac
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Protocol

from xrpaper.config import AuthConfig
from xrpaper.errors import AuthError
from xrpaper.journal.writer import write_json_atomically

LOGGER = logging.getLogger(__name__)

SessionCallback = Callable[["Session | None"], None]


@dataclass(frozen=True, slots=True)
class Session:
    user_id: str
    email: str | None = None


class AuthProvider(Protocol):
    def get_current_session(self) -> Session | None: ...

    def sign_in_with_password(self, email: str, password: str) -> Session: ...

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]: ...

    def sign_out(self) -> None: ...


class LocalAuthProvider:
    """Auth provider backed by one configured account.

    With ``session_file`` set, sign-in and sign-out are persisted there and a
    stored session for the same account overrides ``signed_in`` on startup.
    """

    def __init__(
        self,
        user_id: str,
        *,
        email: str | None = None,
        password: str | None = None,
        signed_in: bool = False,
        session_file: Path | None = None,
    ) -> None:
        self._user_id = user_id
        self._email = email
        self._password = password
        self.session_file = session_file
        self._session: Session | None = Session(user_id=user_id, email=email) if signed_in else None
        self._subscribers: list[SessionCallback] = []
        if session_file is not None and session_file.exists():
            self._load_session(session_file)

    @classmethod
    def from_config(cls, config: AuthConfig, session_file: Path | None = None) -> "LocalAuthProvider":
        password = config.password.get_secret_value() if config.password is not None else None
        return cls(
            config.user_id,
            email=config.email,
            password=password,
            signed_in=config.start_signed_in,
            session_file=session_file,
        )

    def get_current_session(self) -> Session | None:
        return self._session

    def sign_in_with_password(self, email: str, password: str) -> Session:
        """Open a session when the credentials match the configured account."""

        if self._email is not None and email.strip().lower() != self._email.strip().lower():
            raise AuthError("Invalid login credentials")
        if self._password is not None and not hmac.compare_digest(password, self._password):
            raise AuthError("Invalid login credentials")
        self._set_session(Session(user_id=self._user_id, email=email))
        LOGGER.info("Signed in user_id=%s", self._user_id)
        return self._session  # type: ignore[return-value]

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        """Register a callback for session changes; returns an unsubscribe handle."""

        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def sign_out(self) -> None:
        if self._session is None:
            return
        self._set_session(None)
        LOGGER.info("Signed out user_id=%s", self._user_id)

    def _load_session(self, path: Path) -> None:
        try:
            payload: Any = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            LOGGER.warning("Unreadable session file %s; ignoring it", path)
            return
        if not isinstance(payload, dict):
            LOGGER.warning("Unexpected session file content in %s; ignoring it", path)
            return
        stored = payload.get("session")
        if stored is None:
            self._session = None
            return
        if not isinstance(stored, dict) or stored.get("user_id") != self._user_id:
            LOGGER.warning("Session file %s belongs to another account; ignoring it", path)
            return
        self._session = Session(user_id=self._user_id, email=stored.get("email"))

    def _save_session(self) -> None:
        if self.session_file is None:
            return
        session = self._session
        payload = {"session": None if session is None else {"user_id": session.user_id, "email": session.email}}
        write_json_atomically(payload, self.session_file)

    def _set_session(self, session: Session | None) -> None:
        self._session = session
        self._save_session()
        for callback in list(self._subscribers):
            callback(session)
