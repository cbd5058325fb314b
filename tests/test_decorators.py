from unittest.mock import Mock

import pytest

from keylic.common.decorators import license_protected, requires_active_license
from keylic.common.exceptions import LicenseInactiveError


def make_client(active: bool) -> Mock:  # noqa: FBT001
    client = Mock()
    client.is_license_active.return_value = active
    return client


def test_requires_active_license_with_instance() -> None:
    client = make_client(True)

    @requires_active_license(client)
    def protected() -> str:
        return "ran"

    assert protected() == "ran"
    client.is_license_active.return_value = False
    with pytest.raises(LicenseInactiveError, match="License is not active"):
        protected()


def test_requires_active_license_returns_none_without_raising() -> None:
    client = make_client(False)

    @requires_active_license(client, "no license", raise_exception=False)
    def protected() -> str:
        return "ran"

    assert protected() is None


def test_requires_active_license_with_attribute_name() -> None:
    class App:
        def __init__(self) -> None:
            self.auth = make_client(True)

        @requires_active_license("auth")
        def premium(self) -> str:
            return "premium"

    app = App()
    assert app.premium() == "premium"
    app.auth.is_license_active.return_value = False
    with pytest.raises(LicenseInactiveError):
        app.premium()


def test_requires_active_license_with_factory() -> None:
    client = make_client(True)

    @requires_active_license(lambda: client)
    def protected(value: int) -> int:
        return value * 2

    assert protected(21) == 42  # noqa: PLR2004


def test_license_protected_resolves_client_per_call() -> None:
    clients = [make_client(True), make_client(False)]

    @license_protected(lambda: clients[0], "expired")
    def protected() -> str:
        return "ran"

    assert protected() == "ran"
    clients.reverse()
    with pytest.raises(LicenseInactiveError, match="expired"):
        protected()


def test_license_protected_passes_self_to_getter() -> None:
    class App:
        def __init__(self) -> None:
            self.auth = make_client(True)

        @license_protected(lambda self: self.auth)
        def premium(self) -> str:
            return "premium"

    assert App().premium() == "premium"
