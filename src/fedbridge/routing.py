"""Named route table and the builder that recompiles it on demand."""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Iterator, Mapping

import rure
from rure.regex import RegexObject

logger = logging.getLogger(__name__)

_PATH_PARAM_PATTERN = re.compile(r"{([a-zA-Z_][a-zA-Z0-9_]*)}")

LOGIN = "user.login"
REGISTER = "user.register"
PASSWORD_RESET = "user.pass"
LOGOUT = "user.logout"
CANONICAL = "user.canonical"
SINGLE_LOGOUT = "fedbridge.slo"
ASSERTION_CONSUMER = "fedbridge.acs"


class RouteAccessDenied(PermissionError):
    """Raised when a request resolves to a route whose access is disabled."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Access to route {name!r} is disabled")
        self.name = name


@dataclass(slots=True, frozen=True)
class RouteEntry:
    name: str
    path: str
    access: bool = True
    pattern: RegexObject = field(init=False, repr=False, compare=False)
    param_names: tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        pattern, names = _compile_path(self.path)
        object.__setattr__(self, "pattern", pattern)
        object.__setattr__(self, "param_names", names)

    def disabled(self) -> "RouteEntry":
        return replace(self, access=False)

    def with_path(self, path: str) -> "RouteEntry":
        return replace(self, path=path)


class RouteTable:
    """Routes keyed by name."""

    def __init__(self, entries: Iterable[RouteEntry] = ()) -> None:
        self._entries: dict[str, RouteEntry] = {}
        for entry in entries:
            self._entries[entry.name] = entry

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, name: str) -> RouteEntry | None:
        return self._entries.get(name)

    def set(self, entry: RouteEntry) -> None:
        self._entries[entry.name] = entry

    def copy(self) -> "RouteTable":
        return RouteTable(self._entries.values())

    def url_for(self, name: str, **params: object) -> str:
        entry = self._entries.get(name)
        if entry is None:
            raise LookupError(f"Unknown route {name!r}")
        missing = [param for param in entry.param_names if param not in params]
        if missing:
            raise ValueError(f"Route {name!r} requires parameters: {', '.join(missing)}")
        return _PATH_PARAM_PATTERN.sub(lambda match: str(params[match.group(1)]), entry.path)

    def resolve(self, path: str) -> tuple[RouteEntry, Mapping[str, str]]:
        """Return the route serving ``path`` and its captured parameters."""

        for entry in self._entries.values():
            captures = entry.pattern.match(path)
            if captures is None:
                continue
            if not entry.access:
                raise RouteAccessDenied(entry.name)
            return entry, {name: captures.group(name) for name in entry.param_names}
        raise LookupError(f"No route matches {path}")


AlterHook = Callable[[RouteTable], RouteTable]


class RouteBuilder:
    """Recompile the route table from its declared routes.

    Every build starts from the declared routes and runs each alter hook on
    the result, so no edit from a previous build survives. The rebuild flag
    is set by :meth:`set_rebuild_needed` and cleared as a build starts, so a
    request that lands mid-build schedules another one. Setting it several
    times before a build is harmless.
    """

    def __init__(self, routes: Iterable[RouteEntry] = (), *, alter_hooks: Iterable[AlterHook] = ()) -> None:
        self._declared: tuple[RouteEntry, ...] = tuple(routes)
        self._alter_hooks: list[AlterHook] = list(alter_hooks)
        self._table: RouteTable | None = None
        self._rebuild_needed = True
        self._lock = threading.Lock()

    @property
    def rebuild_needed(self) -> bool:
        with self._lock:
            return self._rebuild_needed

    @property
    def table(self) -> RouteTable:
        if self._table is None:
            return self.rebuild()
        return self._table

    def add_alter_hook(self, hook: AlterHook) -> None:
        self._alter_hooks.append(hook)
        self.set_rebuild_needed()

    def set_rebuild_needed(self) -> None:
        with self._lock:
            self._rebuild_needed = True

    def rebuild(self) -> RouteTable:
        with self._lock:
            self._rebuild_needed = False
        table = RouteTable(self._declared)
        try:
            for hook in self._alter_hooks:
                table = hook(table)
        except Exception:
            self.set_rebuild_needed()
            raise
        self._table = table
        logger.debug("Rebuilt route table with %d routes", len(table))
        return table

    def rebuild_if_needed(self) -> bool:
        if not self.rebuild_needed:
            return False
        self.rebuild()
        return True


def default_routes() -> tuple[RouteEntry, ...]:
    return (
        RouteEntry(LOGIN, "/user/login"),
        RouteEntry(REGISTER, "/user/register"),
        RouteEntry(PASSWORD_RESET, "/user/password"),
        RouteEntry(LOGOUT, "/user/logout"),
        RouteEntry(CANONICAL, "/user/{user}"),
        RouteEntry(SINGLE_LOGOUT, "/federation/slo"),
        RouteEntry(ASSERTION_CONSUMER, "/federation/acs"),
    )


def _compile_path(path: str) -> tuple[RegexObject, tuple[str, ...]]:
    parts = _PATH_PARAM_PATTERN.split(path)
    pattern = "".join(
        f"(?P<{part}>[^/]+)" if index % 2 else re.escape(part) for index, part in enumerate(parts)
    )
    return rure.compile(f"^{pattern}$"), tuple(parts[1::2])


__all__ = [
    "ASSERTION_CONSUMER",
    "CANONICAL",
    "LOGIN",
    "LOGOUT",
    "PASSWORD_RESET",
    "REGISTER",
    "SINGLE_LOGOUT",
    "AlterHook",
    "RouteAccessDenied",
    "RouteBuilder",
    "RouteEntry",
    "RouteTable",
    "default_routes",
]
