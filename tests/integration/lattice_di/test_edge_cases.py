"""Integration tests for edge cases of resolution and injection."""

from typing import Annotated, Optional, Protocol

import pytest

from lattice_di import (
    AutowiringError,
    CircularDependencyError,
    Container,
    Inject,
    InjectionError,
    ResolutionError,
)


class Recursive:
    def __init__(self, child: "Recursive"):
        self.child = child


class Parent:
    child: Annotated["Child", Inject()]


class Child:
    parent: Annotated[Parent, Inject()]


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class EmailNotifier:
    def __init__(self):
        self.messages = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


class TestEdgeCases:
    """Edge cases across the resolution pipeline."""

    def test_self_dependency(self):
        """Test that a class depending on itself is a cycle of one."""
        container = Container()

        with pytest.raises(CircularDependencyError) as exc_info:
            container.resolve(Recursive)

        assert exc_info.value.dependency_chain == [Recursive, Recursive]
        assert exc_info.value.cycle == [Recursive, Recursive]

    def test_named_service_bound_to_class(self):
        """Test that names can be bound to autowired classes."""
        container = Container()
        container.singleton("notifier", EmailNotifier)

        assert isinstance(container.resolve("notifier"), EmailNotifier)
        assert container.resolve("notifier") is container.resolve("notifier")

    def test_optional_protocol_without_binding(self):
        """Test that an unbound protocol is optional when declared so."""
        container = Container()

        class Signup:
            def __init__(self, notifier: Optional[Notifier] = None):
                self.notifier = notifier

        assert container.resolve(Signup).notifier is None

        container.bind(Notifier, EmailNotifier)

        assert isinstance(container.resolve(Signup).notifier, EmailNotifier)

    def test_required_protocol_without_binding(self):
        """Test that a required unbound protocol cannot be autowired."""
        container = Container()

        class Signup:
            def __init__(self, notifier: Notifier):
                self.notifier = notifier

        with pytest.raises(AutowiringError) as exc_info:
            container.resolve(Signup)

        assert exc_info.value.parameter_type == "Notifier"

    def test_pep604_optional(self):
        """Test the X | None syntax for optional dependencies."""
        container = Container()

        class Signup:
            def __init__(self, notifier: Notifier | None = None):
                self.notifier = notifier

        assert container.resolve(Signup).notifier is None

    def test_unresolvable_forward_reference(self):
        """Test that broken annotations surface as resolution errors."""
        container = Container()

        class Broken:
            def __init__(self, dependency: "DoesNotExist"):  # noqa: F821
                pass

        with pytest.raises(ResolutionError, match="Cannot introspect"):
            container.resolve(Broken)

    def test_shared_instance_cached_before_injection(self):
        """Test that a shared instance is cached even when injection fails."""
        container = Container()

        class Service:
            notifier: Annotated[Notifier, Inject()]

        container.singleton(Service)

        with pytest.raises(InjectionError):
            container.resolve(Service)

        assert isinstance(container.resolve(Service), Service)

    def test_property_injection_between_shared_services(self):
        """Test that shared services may reference each other through properties."""
        container = Container()
        container.singleton(Parent)
        container.singleton(Child)

        parent = container.resolve(Parent)

        assert parent.child.parent is parent

    def test_contextual_override_not_transitive(self):
        """Test that overrides only apply to the direct consumer."""
        container = Container()
        container.bind(Notifier, EmailNotifier)

        class SmsNotifier:
            def notify(self, message: str) -> None:
                pass

        class Alerts:
            def __init__(self, notifier: Notifier):
                self.notifier = notifier

        class Monitor:
            def __init__(self, alerts: Alerts, notifier: Notifier):
                self.alerts = alerts
                self.notifier = notifier

        container.when(Monitor).needs(Notifier).give(SmsNotifier)

        monitor = container.resolve(Monitor)

        assert isinstance(monitor.notifier, SmsNotifier)
        assert isinstance(monitor.alerts.notifier, EmailNotifier)
