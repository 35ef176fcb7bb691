"""Unit tests for testing utilities."""

from abc import ABC, abstractmethod

import pytest

from lattice_di.application.container import Container
from lattice_di.domain.enums import Lifetime
from lattice_di.domain.exceptions import ServiceNotFoundError
from lattice_di.domain.settings import ContainerSettings
from lattice_di.infrastructure.testing.utilities import TestContainer, create_mock_container


class EmailService(ABC):
    @abstractmethod
    def send(self, to): ...


class SmtpEmailService(EmailService):
    def send(self, to):
        return f"smtp:{to}"


class FakeEmailService(EmailService):
    def __init__(self):
        self.sent = []

    def send(self, to):
        self.sent.append(to)
        return "fake"


class UserService:
    def __init__(self, email: EmailService):
        self.email = email


@pytest.fixture
def parent():
    container = Container()
    container.singleton(EmailService, SmtpEmailService)
    container.singleton(UserService)
    return container


class TestTestContainerInitialization:
    """Test cases for TestContainer initialization."""

    def test_without_parent(self):
        """Test TestContainer can be initialized without parent container."""
        test_container = TestContainer()

        assert isinstance(test_container, Container)
        assert test_container._parent_container is None
        assert len(test_container._overrides) == 0

    def test_inherits_registrations(self, parent):
        """Test TestContainer copies the parent's bindings."""
        test_container = TestContainer(parent)

        assert isinstance(test_container.resolve(UserService).email, SmtpEmailService)

    def test_does_not_share_singletons(self, parent):
        """Test that singletons created by the parent are not reused."""
        resolved_by_parent = parent.resolve(EmailService)

        test_container = TestContainer(parent)

        assert test_container.resolve(EmailService) is not resolved_by_parent

    def test_inherits_registered_instances(self):
        """Test that registered instances are shared with the parent."""
        parent = Container()
        parent.instance("settings", {"env": "test"})

        test_container = TestContainer(parent)

        assert test_container.resolve("settings") is parent.resolve("settings")

    def test_resolves_itself(self, parent):
        """Test that the test container, not the parent, is injected."""
        test_container = TestContainer(parent)

        assert test_container.resolve(Container) is test_container

    def test_inherits_settings(self):
        """Test that the parent's settings are used by default."""
        parent = Container(ContainerSettings(setter_prefix="inject_"))

        assert TestContainer(parent).settings.setter_prefix == "inject_"

    def test_parent_is_unaffected(self, parent):
        """Test that changes to the test container do not leak."""
        test_container = TestContainer(parent)

        test_container.bind("extra", lambda c, params: "value")

        assert not parent.has("extra")


class TestMockSingleton:
    """Test cases for mock_singleton method."""

    def test_replaces_dependency(self, parent):
        """Test that consumers receive the mock."""
        test_container = TestContainer(parent)
        fake = FakeEmailService()

        test_container.mock_singleton(EmailService, fake)

        assert test_container.resolve(EmailService) is fake
        assert test_container.resolve(UserService).email is fake

    def test_rebuilds_consumers_resolved_before(self, parent):
        """Test that singletons resolved before the override are rebuilt."""
        test_container = TestContainer(parent)
        before = test_container.resolve(UserService)
        fake = FakeEmailService()

        test_container.mock_singleton(EmailService, fake)

        after = test_container.resolve(UserService)
        assert after is not before
        assert after.email is fake

    def test_unknown_service(self):
        """Test that names can be mocked without prior registration."""
        test_container = TestContainer()

        test_container.mock_singleton("clock", "frozen")

        assert test_container.resolve("clock") == "frozen"
        assert test_container._overrides == {"clock": "frozen"}


class TestMockTransient:
    """Test cases for mock_transient method."""

    def test_factory_called_every_time(self, parent):
        """Test that the mock factory runs on each resolution."""
        test_container = TestContainer(parent)

        test_container.mock_transient(EmailService, FakeEmailService)

        first = test_container.resolve(EmailService)
        second = test_container.resolve(EmailService)
        assert isinstance(first, FakeEmailService)
        assert first is not second


class TestOverrideRegistration:
    """Test cases for override_registration method."""

    def test_override_with_singleton(self, parent):
        """Test overriding with a shared implementation."""
        test_container = TestContainer(parent)

        test_container.override_registration(EmailService, FakeEmailService, Lifetime.SINGLETON)

        assert isinstance(test_container.resolve(EmailService), FakeEmailService)
        assert test_container.resolve(EmailService) is test_container.resolve(EmailService)

    def test_override_with_string_lifetime(self, parent):
        """Test that lifetimes may be given by value."""
        test_container = TestContainer(parent)

        test_container.override_registration(EmailService, FakeEmailService, "transient")

        assert test_container.resolve(EmailService) is not test_container.resolve(EmailService)

    def test_invalid_lifetime(self, parent):
        """Test that unknown lifetimes are rejected."""
        test_container = TestContainer(parent)

        with pytest.raises(ValueError):
            test_container.override_registration(EmailService, FakeEmailService, "scoped")


class TestResetOverrides:
    """Test cases for reset_overrides and the context manager."""

    def test_reset_restores_parent_registrations(self, parent):
        """Test that overrides are dropped."""
        test_container = TestContainer(parent)
        test_container.mock_singleton(EmailService, FakeEmailService())

        test_container.reset_overrides()

        assert isinstance(test_container.resolve(EmailService), SmtpEmailService)
        assert test_container._overrides == {}

    def test_reset_without_parent(self):
        """Test that a standalone test container is emptied."""
        test_container = TestContainer()
        test_container.mock_singleton("clock", "frozen")

        test_container.reset_overrides()

        with pytest.raises(ServiceNotFoundError):
            test_container.resolve("clock")

    def test_context_manager(self, parent):
        """Test that overrides are removed on exit."""
        with TestContainer(parent) as test_container:
            test_container.mock_singleton(EmailService, FakeEmailService())
            assert isinstance(test_container.resolve(EmailService), FakeEmailService)

        assert isinstance(test_container.resolve(EmailService), SmtpEmailService)


class TestCreateMockContainer:
    """Test cases for create_mock_container function."""

    def test_registers_mocks(self):
        """Test that every pair becomes a mocked singleton."""
        fake = FakeEmailService()

        test_container = create_mock_container((EmailService, fake), ("clock", "frozen"))

        assert test_container.resolve(UserService).email is fake
        assert test_container.resolve("clock") == "frozen"
