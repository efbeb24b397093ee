"""Assertion attribute extraction and validation."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol, Sequence

from msgspec import Struct

from .exceptions import MissingAttributeError

PRIVATE_PERSONAL_IDENTIFIER = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/privatepersonalidentifier"
GIVEN_NAME = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/givenname"
SURNAME = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/surname"

REQUIRED_ATTRIBUTES: tuple[str, ...] = (PRIVATE_PERSONAL_IDENTIFIER,)
IDENTITY_ATTRIBUTE = PRIVATE_PERSONAL_IDENTIFIER

# claim URI -> AttributeSet field
CLAIM_FIELDS: Mapping[str, str] = {
    PRIVATE_PERSONAL_IDENTIFIER: "national_identifier",
    GIVEN_NAME: "given_name",
    SURNAME: "surname",
}


class AssertionResult(Protocol):
    """What the SAML engine exposes after validating an assertion."""

    def get_attribute(self, uri: str) -> Sequence[str]: ...


class StaticAssertionResult:
    """Mapping-backed :class:`AssertionResult`."""

    def __init__(self, attributes: Mapping[str, Sequence[str] | str] | None = None) -> None:
        self._attributes: dict[str, tuple[str, ...]] = {}
        for uri, values in (attributes or {}).items():
            self._attributes[uri] = (values,) if isinstance(values, str) else tuple(values)

    def get_attribute(self, uri: str) -> Sequence[str]:
        return self._attributes.get(uri, ())


class AttributeSet(Struct, frozen=True):
    """Claims extracted from one login attempt."""

    national_identifier: str | None = None
    given_name: str | None = None
    surname: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AttributeSet":
        """Build from claim URI keys, keeping the first value of sequences."""

        values: dict[str, str] = {}
        for uri, field in CLAIM_FIELDS.items():
            value = _first(data.get(uri))
            if value is not None:
                values[field] = value
        return cls(**values)

    def get(self, uri: str) -> str | None:
        field = CLAIM_FIELDS.get(uri)
        return getattr(self, field) if field is not None else None

    def as_mapping(self) -> dict[str, str]:
        return {uri: value for uri in CLAIM_FIELDS if (value := self.get(uri)) is not None}


class AssertionProcessor:
    """Extract the required claims, failing on the first one that is absent."""

    def __init__(self, required: Iterable[str] = REQUIRED_ATTRIBUTES) -> None:
        self.required = tuple(required)
        unknown = [uri for uri in self.required if uri not in CLAIM_FIELDS]
        if unknown:
            raise ValueError(f"Unsupported required attributes: {', '.join(unknown)}")

    def extract_required_attributes(self, assertion: AssertionResult) -> AttributeSet:
        collected: dict[str, str] = {}
        for uri in self.required:
            value = _first(assertion.get_attribute(uri))
            if value is None:
                raise MissingAttributeError(uri, source="assertion")
            collected[uri] = value
        for uri in CLAIM_FIELDS:
            if uri in collected:
                continue
            value = _first(assertion.get_attribute(uri))
            if value is not None:
                collected[uri] = value
        return AttributeSet.from_mapping(collected)

    def validate_mapping(self, data: AttributeSet | Mapping[str, Any]) -> AttributeSet:
        attributes = data if isinstance(data, AttributeSet) else AttributeSet.from_mapping(data)
        for uri in self.required:
            if attributes.get(uri) is None:
                raise MissingAttributeError(uri, source="provided data")
        return attributes


def _first(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, Sequence):
        return _first(value[0]) if value else None
    return str(value)


__all__ = [
    "CLAIM_FIELDS",
    "GIVEN_NAME",
    "IDENTITY_ATTRIBUTE",
    "PRIVATE_PERSONAL_IDENTIFIER",
    "REQUIRED_ATTRIBUTES",
    "SURNAME",
    "AssertionProcessor",
    "AssertionResult",
    "AttributeSet",
    "StaticAssertionResult",
]
