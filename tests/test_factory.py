import unittest
from typing import Protocol

import pytest

from wirebox import (
    Container,
    DuplicateRegistrationError,
    HandlerFactory,
    HandlerResolveError,
    Lifecycle,
    UnregisteredTypeError,
)


class Locator(Protocol):
    @property
    def location(self) -> str: ...


class Realm(Protocol):
    @property
    def realm_type(self) -> str: ...


class LdapLocator:
    def __init__(self):
        self._location = "ldap://default"

    @property
    def location(self) -> str:
        return self._location


class LdapRealm:
    def __init__(self, locator: Locator):
        self.locator = locator

    @property
    def realm_type(self) -> str:
        return "LDAP"


class HomeHandler:
    def __init__(self, realm: Realm):
        self.realm = realm

    def index(self) -> str:
        return f"{self.realm.realm_type} at {self.realm.locator.location}"


class TestHandlerFactory(unittest.TestCase):
    cont: Container
    factory: HandlerFactory

    def setUp(self):
        self.cont = Container()
        self.cont.register(Locator, LdapLocator, Lifecycle.SINGLETON)
        self.cont.register(Realm, LdapRealm)
        self.factory = HandlerFactory(self.cont)

    def test_create_resolves_handler_with_dependencies(self):
        self.factory.register_handler("HomeHandler", HomeHandler)

        handler = self.factory.create("HomeHandler")

        assert isinstance(handler, HomeHandler)
        assert handler.index() == "LDAP at ldap://default"

    def test_register_handler_registers_handler_type_on_container(self):
        self.factory.register_handler("HomeHandler", HomeHandler)

        assert self.cont.exists(HomeHandler)
        assert list(self.factory.names()) == ["HomeHandler"]

    def test_create_returns_new_handler_per_request_by_default(self):
        self.factory.register_handler("HomeHandler", HomeHandler)

        first = self.factory.create("HomeHandler")
        second = self.factory.create("HomeHandler")

        assert first is not second
        assert first.realm.locator is second.realm.locator

    def test_create_honors_singleton_handlers(self):
        self.factory.register_handler("HomeHandler", HomeHandler, Lifecycle.SINGLETON)

        assert self.factory.create("HomeHandler") is self.factory.create("HomeHandler")

    def test_create_unknown_name_raises(self):
        with pytest.raises(HandlerResolveError) as ctx:
            self.factory.create("Missing")
        assert "Couldn't create handler for name: Missing" in str(ctx.value)
        assert ctx.value.name == "Missing"

    def test_create_empty_name_raises_value_error(self):
        with pytest.raises(ValueError):
            self.factory.create("")

    def test_create_wraps_missing_dependency(self):
        factory = HandlerFactory(Container())
        factory.register_handler("HomeHandler", HomeHandler)

        with pytest.raises(HandlerResolveError) as ctx:
            factory.create("HomeHandler")
        assert isinstance(ctx.value.__cause__, UnregisteredTypeError)
        assert ctx.value.__cause__.token is Realm

    def test_register_same_name_twice_raises(self):
        class OtherHandler: ...

        self.factory.register_handler("HomeHandler", HomeHandler)

        with pytest.raises(DuplicateRegistrationError):
            self.factory.register_handler("HomeHandler", OtherHandler)
        assert not self.cont.exists(OtherHandler)

    def test_register_same_handler_under_two_names_raises(self):
        self.factory.register_handler("home", HomeHandler)

        with pytest.raises(DuplicateRegistrationError):
            self.factory.register_handler("index", HomeHandler)
        assert list(self.factory.names()) == ["home"]

    def test_factory_requires_container(self):
        with pytest.raises(ValueError):
            HandlerFactory(None)
