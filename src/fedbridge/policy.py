"""Route access policy driven by the federation settings."""

from __future__ import annotations

import logging
from typing import Callable

from msgspec import Struct

from .config import SETTINGS_NAME, ConfigSaved, FederationSettings, OperatingMode
from .routing import (
    LOGIN,
    LOGOUT,
    PASSWORD_RESET,
    REGISTER,
    SINGLE_LOGOUT,
    RouteBuilder,
    RouteTable,
)

logger = logging.getLogger(__name__)

DEDICATED_DISABLED_ROUTES: frozenset[str] = frozenset({LOGIN, REGISTER, PASSWORD_RESET})


class AccessPolicySnapshot(Struct, frozen=True):
    """Routes to disable and where logout should point for one build."""

    mode: OperatingMode
    disabled: frozenset[str] = frozenset()
    logout_path: str | None = None


class RouteAccessPolicy:
    """Decide which local-credential routes stay reachable.

    Dedicated federation sites never expose login, registration, or password
    reset. Shared sites hide password reset when default login is disabled
    and send logout through single logout while federation is active.
    """

    def __init__(self, builder: RouteBuilder | None = None) -> None:
        self.builder = builder

    def snapshot(self, table: RouteTable, settings: FederationSettings, mode: OperatingMode) -> AccessPolicySnapshot:
        if mode is OperatingMode.DEDICATED:
            return AccessPolicySnapshot(mode=mode, disabled=DEDICATED_DISABLED_ROUTES)
        disabled = frozenset({PASSWORD_RESET}) if settings.disable_default_login else frozenset()
        logout_path = None
        if settings.activate:
            single_logout = table.get(SINGLE_LOGOUT)
            if single_logout is not None:
                logout_path = single_logout.path
            else:
                logger.warning("Single logout route %s is not registered; logout left unchanged", SINGLE_LOGOUT)
        return AccessPolicySnapshot(mode=mode, disabled=disabled, logout_path=logout_path)

    def apply(self, table: RouteTable, settings: FederationSettings, mode: OperatingMode) -> RouteTable:
        snapshot = self.snapshot(table, settings, mode)
        result = table.copy()
        for name in snapshot.disabled:
            entry = result.get(name)
            if entry is not None:
                result.set(entry.disabled())
        logout = result.get(LOGOUT)
        if snapshot.logout_path is not None and logout is not None:
            result.set(logout.with_path(snapshot.logout_path))
        return result

    def alter_hook(
        self,
        settings: Callable[[], FederationSettings],
        mode: Callable[[], OperatingMode],
    ) -> Callable[[RouteTable], RouteTable]:
        """Bind ``apply`` to settings and mode providers for :class:`RouteBuilder`."""

        def hook(table: RouteTable) -> RouteTable:
            return self.apply(table, settings(), mode())

        return hook

    @staticmethod
    def on_config_changed(config_name: str) -> bool:
        return config_name == SETTINGS_NAME

    def on_config_saved(self, event: ConfigSaved) -> None:
        if not self.on_config_changed(event.name):
            return
        if self.builder is None:
            return
        logger.info("Federation settings saved; route rebuild scheduled")
        self.builder.set_rebuild_needed()


__all__ = ["DEDICATED_DISABLED_ROUTES", "AccessPolicySnapshot", "RouteAccessPolicy"]
