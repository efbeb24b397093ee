"""Wire the federation components together."""

from __future__ import annotations

from typing import Iterable

from .accounts import AccountStore, IdentityResolver, InMemoryAccountStore
from .attributes import AssertionProcessor
from .authentication import AuthenticationService
from .config import SETTINGS_NAME, AppConfig, ConfigStore, FederationSettings, OperatingMode
from .crypto import Cryptor, PayloadCodec
from .observability import Observability
from .policy import RouteAccessPolicy
from .routing import RouteBuilder, RouteEntry, RouteTable, default_routes
from .sessions import (
    InMemorySessionManager,
    InMemoryUserData,
    SessionFinalizer,
    SessionManager,
    UserDataStore,
)


class FederationApp:
    """A configured federation deployment.

    The live federation settings come from ``config_store``; saving them
    there schedules a route rebuild, which :meth:`routes` performs before
    handing out the table.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        accounts: AccountStore | None = None,
        session_manager: SessionManager | None = None,
        user_data: UserDataStore | None = None,
        config_store: ConfigStore | None = None,
        routes: Iterable[RouteEntry] | None = None,
        observability: Observability | None = None,
    ) -> None:
        self.config = config
        self.accounts = accounts if accounts is not None else InMemoryAccountStore()
        self.session_manager = session_manager if session_manager is not None else InMemorySessionManager()
        self.user_data = user_data if user_data is not None else InMemoryUserData()
        self.config_store = config_store if config_store is not None else ConfigStore()
        if self.config_store.get(SETTINGS_NAME) is None:
            self.config_store.save(SETTINGS_NAME, config.settings)
        self.observability = observability or Observability(config.observability)
        self.cryptor = Cryptor.from_config(config.crypto)
        self.codec = PayloadCodec(self.cryptor, ttl=config.crypto.payload_ttl_seconds)
        self.route_builder = RouteBuilder(default_routes() if routes is None else routes)
        self.policy = RouteAccessPolicy(self.route_builder)
        self.route_builder.add_alter_hook(self.policy.alter_hook(self.settings, self.operating_mode))
        self.config_store.subscribe(self.policy.on_config_saved)
        self.finalizer = SessionFinalizer(self.session_manager, self.user_data)
        self.authentication = AuthenticationService(
            processor=AssertionProcessor(),
            resolver=IdentityResolver(self.cryptor, self.accounts),
            finalizer=self.finalizer,
            routes=self.route_builder,
            codec=self.codec,
            base_url=config.base_url,
            observability=self.observability,
        )

    def settings(self) -> FederationSettings:
        return self.config_store.settings()

    def operating_mode(self) -> OperatingMode:
        return self.config.operating_mode

    def save_settings(self, settings: FederationSettings) -> None:
        self.config_store.save(SETTINGS_NAME, settings)

    def routes(self) -> RouteTable:
        self.route_builder.rebuild_if_needed()
        return self.route_builder.table


__all__ = ["FederationApp"]
