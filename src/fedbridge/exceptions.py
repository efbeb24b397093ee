"""Error types raised by the federation pipeline."""

from __future__ import annotations


class FederationError(Exception):
    """Base error type."""


class ConfigurationError(FederationError):
    """Raised when required configuration is missing or malformed."""


class MissingAttributeError(FederationError):
    """Raised when an assertion or supplied data lacks a required claim."""

    def __init__(self, attribute: str, *, source: str = "assertion") -> None:
        super().__init__(f'An attribute "{attribute}" cannot be found in the {source}.')
        self.attribute = attribute
        self.source = source


class ResolutionError(FederationError):
    """Raised when an external identifier does not map to exactly one account."""

    outcome = "resolution_failed"


class AccountNotFoundError(ResolutionError):
    """No account carries the hashed identifier."""

    outcome = "account_not_found"

    def __init__(self) -> None:
        super().__init__("No account found with the given identifier.")


class AccountAmbiguousError(ResolutionError):
    """More than one account carries the hashed identifier."""

    outcome = "account_ambiguous"

    def __init__(self, count: int) -> None:
        super().__init__(f"{count} accounts share the given identifier.")
        self.count = count


class DecryptionError(FederationError):
    """Raised when a protected payload is malformed, foreign, or tampered with."""


__all__ = [
    "AccountAmbiguousError",
    "AccountNotFoundError",
    "ConfigurationError",
    "DecryptionError",
    "FederationError",
    "MissingAttributeError",
    "ResolutionError",
]
