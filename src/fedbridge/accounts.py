"""Account lookup keyed by hashed external identifiers."""

from __future__ import annotations

import threading
from typing import Iterable, Protocol, Sequence

from msgspec import Struct

from .crypto import Cryptor
from .exceptions import AccountAmbiguousError, AccountNotFoundError

IDENTITY_FIELD = "identity"


class LocalAccount(Protocol):
    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...


class Account(Struct, frozen=True):
    """Pre-provisioned local account.

    ``identity`` holds the hashed external identifier, never the raw value.
    """

    id: str
    name: str
    identity: str | None = None


class AccountStore(Protocol):
    def load_by_property(self, field_name: str, value: str) -> Sequence[LocalAccount]: ...


class InMemoryAccountStore:
    """Account store backed by a dictionary keyed on account id."""

    def __init__(self, accounts: Iterable[Account] | None = None) -> None:
        self._accounts: dict[str, Account] = {}
        self._lock = threading.Lock()
        for account in accounts or []:
            self.add(account)

    def add(self, account: Account) -> None:
        with self._lock:
            self._accounts[account.id] = account

    def get(self, account_id: str) -> Account | None:
        with self._lock:
            return self._accounts.get(account_id)

    def load_by_property(self, field_name: str, value: str) -> list[Account]:
        with self._lock:
            accounts = list(self._accounts.values())
        return [account for account in accounts if getattr(account, field_name, None) == value]


class IdentityResolver:
    """Map an external identifier to exactly one local account.

    The identifier is hashed and looked up by exact match on
    :data:`IDENTITY_FIELD`. Zero matches raise :class:`AccountNotFoundError`;
    two or more raise :class:`AccountAmbiguousError`. No member of a
    multi-match set is ever returned.
    """

    def __init__(self, cryptor: Cryptor, store: AccountStore, *, field_name: str = IDENTITY_FIELD) -> None:
        self.cryptor = cryptor
        self.store = store
        self.field_name = field_name

    def resolve(self, external_identifier: str) -> LocalAccount:
        if not external_identifier:
            raise AccountNotFoundError()
        hashed = self.cryptor.hash_string(external_identifier)
        matches = list(self.store.load_by_property(self.field_name, hashed))
        if len(matches) == 1:
            return matches[0]
        if not matches:
            raise AccountNotFoundError()
        raise AccountAmbiguousError(len(matches))


__all__ = [
    "IDENTITY_FIELD",
    "Account",
    "AccountStore",
    "IdentityResolver",
    "InMemoryAccountStore",
    "LocalAccount",
]
