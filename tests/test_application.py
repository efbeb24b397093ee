from __future__ import annotations

import pytest

from fedbridge.accounts import Account
from fedbridge.application import FederationApp
from fedbridge.attributes import PRIVATE_PERSONAL_IDENTIFIER, StaticAssertionResult
from fedbridge.authentication import LOGIN_FAILED, RedirectTarget
from fedbridge.config import FederationSettings, OperatingMode
from fedbridge.routing import LOGIN, LOGOUT, PASSWORD_RESET, REGISTER, RouteAccessDenied
from tests.support import make_config

IDENTIFIER = "123456-78910"


def _app(**overrides: object) -> FederationApp:
    app = FederationApp(make_config(**overrides))
    identity = app.cryptor.hash_string(IDENTIFIER)
    app.accounts.add(Account(id="7", name="anna", identity=identity))  # type: ignore[attr-defined]
    return app


def test_end_to_end_login_through_payload() -> None:
    app = _app()
    attributes = app.authentication.process_login_request(
        StaticAssertionResult({PRIVATE_PERSONAL_IDENTIFIER: [IDENTIFIER]})
    )
    token = app.authentication.encrypt_user_data(attributes)  # type: ignore[arg-type]
    result = app.authentication.login_with_payload(token)
    assert isinstance(result, RedirectTarget)
    assert result.url == "https://example.test/user/7"


def test_unknown_user_gets_opaque_failure() -> None:
    app = _app()
    assert app.authentication.process_login({PRIVATE_PERSONAL_IDENTIFIER: "000000-00000"}) is LOGIN_FAILED


def test_scenario_d_dedicated_site_blocks_local_credentials() -> None:
    app = _app(site_path="sites/federation", settings=FederationSettings(activate=True))
    assert app.operating_mode() is OperatingMode.DEDICATED
    table = app.routes()
    for name, path in ((LOGIN, "/user/login"), (REGISTER, "/user/register"), (PASSWORD_RESET, "/user/password")):
        assert table.get(name).access is False  # type: ignore[union-attr]
        with pytest.raises(RouteAccessDenied):
            table.resolve(path)
    assert table.get(LOGOUT).path == "/user/logout"  # type: ignore[union-attr]


def test_scenario_e_settings_save_reroutes_logout_on_next_build() -> None:
    app = _app()
    assert app.routes().get(LOGOUT).path == "/user/logout"  # type: ignore[union-attr]

    app.save_settings(FederationSettings(activate=True, disable_default_login=True))
    assert app.route_builder.rebuild_needed
    table = app.routes()
    assert not app.route_builder.rebuild_needed
    assert table.get(LOGOUT).path == "/federation/slo"  # type: ignore[union-attr]
    assert table.get(PASSWORD_RESET).access is False  # type: ignore[union-attr]
    entry, _ = table.resolve("/federation/slo")
    assert entry.name == LOGOUT

    app.save_settings(FederationSettings())
    table = app.routes()
    assert table.get(LOGOUT).path == "/user/logout"  # type: ignore[union-attr]
    assert table.get(PASSWORD_RESET).access is True  # type: ignore[union-attr]


def test_unrelated_config_saves_do_not_rebuild() -> None:
    app = _app()
    app.routes()
    app.config_store.save("system.site", {"name": "Portal"})
    assert not app.route_builder.rebuild_needed
