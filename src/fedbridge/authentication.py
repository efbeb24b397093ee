"""Federated login orchestration."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from msgspec import Struct

from .accounts import IdentityResolver, LocalAccount
from .attributes import AssertionProcessor, AssertionResult, AttributeSet
from .crypto import PayloadCodec
from .exceptions import (
    AccountAmbiguousError,
    AccountNotFoundError,
    DecryptionError,
    MissingAttributeError,
)
from .observability import Observability
from .routing import CANONICAL, RouteBuilder
from .sessions import SessionFinalizer, SessionHandle

logger = logging.getLogger(__name__)

USER_DATA_PURPOSE = "user-data"


class LoginFailed(Struct, frozen=True):
    """Opaque failure outcome; never says which stage failed."""

    reason: str = "login_failed"


LOGIN_FAILED = LoginFailed()


class RedirectTarget(Struct, frozen=True):
    url: str
    status: int = 302
    session: SessionHandle | None = None


class AuthenticationService:
    """Turn identity-provider assertions into local sessions.

    ``process_login_request`` extracts the required claims from a validated
    assertion. ``process_login`` resolves those claims to exactly one local
    account, finalizes the session, and redirects to the account page. Every
    failure is logged with its cause and reported to the caller as
    :data:`LOGIN_FAILED`; unexpected errors are logged with their traceback.
    """

    def __init__(
        self,
        *,
        processor: AssertionProcessor,
        resolver: IdentityResolver,
        finalizer: SessionFinalizer,
        routes: RouteBuilder,
        codec: PayloadCodec,
        base_url: str = "",
        observability: Observability | None = None,
    ) -> None:
        self.processor = processor
        self.resolver = resolver
        self.finalizer = finalizer
        self.routes = routes
        self.codec = codec
        self.base_url = base_url.rstrip("/")
        self.observability = observability or Observability()

    def process_login_request(self, assertion: AssertionResult) -> AttributeSet | LoginFailed:
        with self.observability.span("fedbridge.login_request"):
            try:
                attributes = self.processor.extract_required_attributes(assertion)
            except MissingAttributeError as exc:
                self._missing_attribute("login_request", exc)
                return LOGIN_FAILED
            except Exception:
                self._internal_error("login_request")
                return LOGIN_FAILED
        self.observability.record("login_request_accepted", stage="login_request")
        return attributes

    def process_login(self, data: AttributeSet | Mapping[str, Any]) -> RedirectTarget | LoginFailed:
        with self.observability.span("fedbridge.login"):
            try:
                attributes = self.processor.validate_mapping(data)
                account = self.load(attributes.national_identifier or "")
                if account is None:
                    return LOGIN_FAILED
                handle = self.finalizer.finalize(account)
                url = self.base_url + self.routes.table.url_for(CANONICAL, user=account.id)
            except MissingAttributeError as exc:
                self._missing_attribute("login", exc)
                return LOGIN_FAILED
            except Exception:
                self._internal_error("login")
                return LOGIN_FAILED
        self.observability.record("login_succeeded", stage="login", account_id=account.id)
        return RedirectTarget(url=url, session=handle)

    def load(self, identifier: str) -> LocalAccount | None:
        """Resolve ``identifier`` to an account, logging and returning ``None`` on failure."""

        try:
            return self.resolver.resolve(identifier)
        except AccountAmbiguousError as exc:
            logger.error("Login failed: %s Account data needs operator attention.", exc)
            self.observability.record(
                "login_failed", level=logging.ERROR, stage="resolve", outcome=exc.outcome, matches=exc.count
            )
        except AccountNotFoundError as exc:
            logger.warning("Login failed: %s", exc)
            self.observability.record("login_failed", level=logging.WARNING, stage="resolve", outcome=exc.outcome)
        return None

    def encrypt_user_data(self, data: AttributeSet | Mapping[str, Any]) -> str:
        attributes = data if isinstance(data, AttributeSet) else AttributeSet.from_mapping(data)
        return self.codec.encode(USER_DATA_PURPOSE, attributes)

    def decrypt_user_data(self, token: str) -> AttributeSet:
        return self.codec.decode(USER_DATA_PURPOSE, token, target=AttributeSet)

    def login_with_payload(self, token: str) -> RedirectTarget | LoginFailed:
        """Complete a login from user data carried across a redirect."""

        try:
            attributes = self.decrypt_user_data(token)
        except DecryptionError as exc:
            logger.warning("Login failed: discarded user data payload (%s)", exc)
            self.observability.record(
                "login_failed", level=logging.WARNING, stage="decrypt", outcome="payload_rejected"
            )
            return LOGIN_FAILED
        return self.process_login(attributes)

    def _missing_attribute(self, stage: str, exc: MissingAttributeError) -> None:
        logger.warning("Login failed: %s", exc)
        self.observability.record(
            "login_failed",
            level=logging.WARNING,
            stage=stage,
            outcome="missing_attribute",
            attribute=exc.attribute,
        )

    def _internal_error(self, stage: str) -> None:
        logger.exception("Login failed: unexpected error during %s", stage)
        self.observability.record("login_failed", level=logging.ERROR, stage=stage, outcome="internal_error")


__all__ = [
    "LOGIN_FAILED",
    "USER_DATA_PURPOSE",
    "AuthenticationService",
    "LoginFailed",
    "RedirectTarget",
]
