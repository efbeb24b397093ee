"""Federated identity bridge: assertion claims to local sessions."""

from .accounts import Account, IdentityResolver, InMemoryAccountStore
from .application import FederationApp
from .attributes import AssertionProcessor, AttributeSet, StaticAssertionResult
from .authentication import LOGIN_FAILED, AuthenticationService, LoginFailed, RedirectTarget
from .config import AppConfig, ConfigStore, CryptoConfig, FederationSettings, OperatingMode
from .crypto import Cryptor, PayloadCodec
from .exceptions import (
    AccountAmbiguousError,
    AccountNotFoundError,
    ConfigurationError,
    DecryptionError,
    FederationError,
    MissingAttributeError,
    ResolutionError,
)
from .observability import Observability, ObservabilityConfig
from .policy import AccessPolicySnapshot, RouteAccessPolicy
from .routing import RouteBuilder, RouteEntry, RouteTable
from .sessions import SessionFinalizer, SessionHandle

__all__ = [
    "LOGIN_FAILED",
    "AccessPolicySnapshot",
    "Account",
    "AccountAmbiguousError",
    "AccountNotFoundError",
    "AppConfig",
    "AssertionProcessor",
    "AttributeSet",
    "AuthenticationService",
    "ConfigStore",
    "ConfigurationError",
    "CryptoConfig",
    "Cryptor",
    "DecryptionError",
    "FederationApp",
    "FederationError",
    "FederationSettings",
    "IdentityResolver",
    "InMemoryAccountStore",
    "LoginFailed",
    "MissingAttributeError",
    "Observability",
    "ObservabilityConfig",
    "OperatingMode",
    "PayloadCodec",
    "RedirectTarget",
    "ResolutionError",
    "RouteAccessPolicy",
    "RouteBuilder",
    "RouteEntry",
    "RouteTable",
    "SessionFinalizer",
    "SessionHandle",
    "StaticAssertionResult",
]
