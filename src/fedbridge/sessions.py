"""Local session finalization for federated logins."""

from __future__ import annotations

import logging
import secrets
import threading
from typing import Any, Callable, Protocol

from msgspec import Struct

from .accounts import LocalAccount

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("fedbridge.audit")

FLAG_NAMESPACE = "fedbridge"
LOGGED_IN_FLAG = "logged_in"

PostLoginHook = Callable[[LocalAccount], None]


class SessionManager(Protocol):
    def establish_session(self, account: LocalAccount) -> str: ...


class UserDataStore(Protocol):
    def set_flag(self, namespace: str, account_id: str, key: str, value: Any) -> None: ...

    def get_flag(self, namespace: str, account_id: str, key: str, default: Any = None) -> Any: ...


class InMemorySessionManager:
    def __init__(self) -> None:
        self._sessions: dict[str, str] = {}
        self._lock = threading.Lock()

    def establish_session(self, account: LocalAccount) -> str:
        session_id = secrets.token_urlsafe(32)
        with self._lock:
            self._sessions[session_id] = account.id
        return session_id

    def account_for(self, session_id: str) -> str | None:
        with self._lock:
            return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)


class InMemoryUserData:
    def __init__(self) -> None:
        self._values: dict[tuple[str, str, str], Any] = {}
        self._lock = threading.Lock()

    def set_flag(self, namespace: str, account_id: str, key: str, value: Any) -> None:
        with self._lock:
            self._values[(namespace, account_id, key)] = value

    def get_flag(self, namespace: str, account_id: str, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get((namespace, account_id, key), default)


class SessionHandle(Struct, frozen=True):
    """Outcome of a finalized federated login."""

    account_id: str
    account_name: str
    session_id: str
    federated: bool = True
    flag_recorded: bool = True


class SessionFinalizer:
    """Establish the session, flag it as federated, and audit it.

    The federation flag is written after the session exists and is
    best-effort: if the user-data store fails the session stays established,
    the failure is logged, and the handle reports ``flag_recorded=False``.
    """

    def __init__(
        self,
        session_manager: SessionManager,
        user_data: UserDataStore,
        *,
        hooks: list[PostLoginHook] | None = None,
    ) -> None:
        self.session_manager = session_manager
        self.user_data = user_data
        self._hooks: list[PostLoginHook] = list(hooks or [])

    def add_hook(self, hook: PostLoginHook) -> None:
        self._hooks.append(hook)

    def finalize(self, account: LocalAccount) -> SessionHandle:
        session_id = self.session_manager.establish_session(account)
        flag_recorded = self._record_flag(account)
        audit_logger.info("User %s is logged in (via federation).", account.name)
        for hook in self._hooks:
            self._run_hook(hook, account)
        return SessionHandle(
            account_id=account.id,
            account_name=account.name,
            session_id=session_id,
            flag_recorded=flag_recorded,
        )

    def _run_hook(self, hook: PostLoginHook, account: LocalAccount) -> None:
        try:
            hook(account)
        except Exception:
            logger.exception("Post-login hook %r failed for account %s", hook, account.id)

    def _record_flag(self, account: LocalAccount) -> bool:
        try:
            self.user_data.set_flag(FLAG_NAMESPACE, account.id, LOGGED_IN_FLAG, True)
        except Exception:
            logger.exception("Failed to record federated login flag for account %s", account.id)
            return False
        return True


__all__ = [
    "FLAG_NAMESPACE",
    "LOGGED_IN_FLAG",
    "InMemorySessionManager",
    "InMemoryUserData",
    "PostLoginHook",
    "SessionFinalizer",
    "SessionHandle",
    "SessionManager",
    "UserDataStore",
]
