"""Unit tests for property and setter injection."""

from abc import ABC, abstractmethod
from typing import Annotated, Optional, Protocol

import pytest

from lattice_di.application.container import Container
from lattice_di.domain import (
    CircularDependencyError,
    ContainerSettings,
    Inject,
    InjectionError,
    ServiceNotFoundError,
)


class Logger(ABC):
    @abstractmethod
    def log(self, message): ...


class ConsoleLogger(Logger):
    def log(self, message):
        return f"console: {message}"


class FileLogger(Logger):
    def log(self, message):
        return f"file: {message}"


class Storage:
    pass


class LocalStorage(Storage):
    pass


class Metrics(Protocol):
    def increment(self, name: str) -> None: ...


class SetterA:
    def set_b(self, b: "SetterB"):
        self.b = b


class SetterB:
    def set_a(self, a: SetterA):
        self.a = a


@pytest.fixture
def container():
    container = Container()
    container.bind(Logger, ConsoleLogger)
    return container


class TestPropertyInjection:
    """Test cases for Inject marked attributes."""

    def test_injects_annotated_type(self, container):
        """Test that the annotated class is resolved and assigned."""

        class Service:
            logger: Annotated[Logger, Inject()]

        service = container.resolve(Service)

        assert isinstance(service.logger, ConsoleLogger)

    def test_explicit_class_wins(self, container):
        """Test that the marker's class is resolved instead of the annotation."""

        class Service:
            storage: Annotated[Storage, Inject(LocalStorage)]

        assert isinstance(container.resolve(Service).storage, LocalStorage)

    def test_unmarked_attributes_are_ignored(self, container):
        """Test that plain annotations are not injection points."""

        class Service:
            logger: Logger
            name: str = "service"

        service = container.resolve(Service)

        assert not hasattr(service, "logger")
        assert service.name == "service"

    def test_inherited_markers(self, container):
        """Test that markers declared on base classes are honoured."""

        class Base:
            logger: Annotated[Logger, Inject()]

        class Child(Base):
            storage: Annotated[Storage, Inject()]

        child = container.resolve(Child)

        assert isinstance(child.logger, ConsoleLogger)
        assert isinstance(child.storage, Storage)

    def test_runs_after_constructor(self, container):
        """Test that injected values replace what the constructor assigned."""

        class Service:
            logger: Annotated[Logger, Inject()]

            def __init__(self):
                self.logger = None

        assert isinstance(container.resolve(Service).logger, ConsoleLogger)

    def test_builtin_without_explicit_class(self, container):
        """Test that a marker on a built-in type has nothing to resolve."""

        class Service:
            name: Annotated[str, Inject()]

        with pytest.raises(InjectionError) as exc_info:
            container.resolve(Service)

        assert exc_info.value.target == "name"
        assert exc_info.value.injection_type == "property"
        assert exc_info.value.reason == "No dependency type specified and no type hint available"

    def test_private_attribute(self, container):
        """Test that underscore attributes are not injection points."""

        class Service:
            _logger: Annotated[Logger, Inject()]

        with pytest.raises(InjectionError) as exc_info:
            container.resolve(Service)

        assert exc_info.value.reason == 'Property "_logger" is not public'
        assert exc_info.value.__cause__ is None

    def test_read_only_property(self, container):
        """Test that properties without setter cannot be injected."""

        class Service:
            logger: Annotated[Logger, Inject()]

            @property
            def logger(self):
                return None

        with pytest.raises(InjectionError) as exc_info:
            container.resolve(Service)

        assert exc_info.value.reason == 'Property "logger" is not public'

    def test_unresolvable_dependency(self, container):
        """Test that resolution failures are wrapped with the cause."""

        class Service:
            metrics: Annotated[Metrics, Inject()]

        with pytest.raises(InjectionError) as exc_info:
            container.resolve(Service)

        assert exc_info.value.reason.startswith("Failed to resolve property dependencies")
        assert isinstance(exc_info.value.__cause__, ServiceNotFoundError)

    def test_disabled(self):
        """Test that property injection can be switched off."""
        container = Container(ContainerSettings(property_injection=False))

        class Service:
            logger: Annotated[Logger, Inject()]

        assert not hasattr(container.resolve(Service), "logger")


class TestSetterInjection:
    """Test cases for setter methods."""

    def test_setter_is_called(self, container):
        """Test that a prefixed method with one class parameter is called."""

        class Service:
            def set_logger(self, logger: Logger):
                self.logger = logger

        assert isinstance(container.resolve(Service).logger, ConsoleLogger)

    def test_non_setters_are_skipped(self, container):
        """Test that methods not matching the setter shape are left alone."""

        class Service:
            def __init__(self):
                self.calls = []

            def set_count(self, count: int):
                self.calls.append("count")

            def set_pair(self, logger: Logger, storage: Storage):
                self.calls.append("pair")

            def set_untyped(self, value):
                self.calls.append("untyped")

            def set_nothing(self):
                self.calls.append("nothing")

            def _set_private(self, logger: Logger):
                self.calls.append("private")

            def configure(self, logger: Logger):
                self.calls.append("configure")

            @staticmethod
            def set_static(logger: Logger):
                raise AssertionError("static methods are not setters")

        assert container.resolve(Service).calls == []

    def test_optional_setter_skipped_when_unknown(self, container):
        """Test that optional setters are skipped for unknown services."""

        class Service:
            metrics = None

            def set_metrics(self, metrics: Optional[Metrics] = None):
                self.metrics = metrics

        assert container.resolve(Service).metrics is None

    def test_optional_setter_called_when_bound(self, container):
        """Test that optional setters are called once the service is known."""

        class StatsdMetrics:
            def increment(self, name: str) -> None:
                pass

        container.bind(Metrics, StatsdMetrics)

        class Service:
            def set_metrics(self, metrics: Optional[Metrics] = None):
                self.metrics = metrics

        assert isinstance(container.resolve(Service).metrics, StatsdMetrics)

    def test_required_setter_failure(self, container):
        """Test that a required setter with an unknown service fails."""

        class Service:
            def set_metrics(self, metrics: Metrics):
                self.metrics = metrics

        with pytest.raises(InjectionError) as exc_info:
            container.resolve(Service)

        assert exc_info.value.target == "set_metrics"
        assert exc_info.value.injection_type == "method"
        assert exc_info.value.reason.startswith("Failed to resolve method dependencies")

    def test_setter_raising(self, container):
        """Test that exceptions raised by the setter are wrapped."""

        class Service:
            def set_logger(self, logger: Logger):
                raise RuntimeError("refused")

        with pytest.raises(InjectionError) as exc_info:
            container.resolve(Service)

        assert exc_info.value.reason == "Unexpected error: refused"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_broken_annotation(self, container):
        """Test that unreadable setter annotations are reflection errors."""

        class Service:
            def set_logger(self, logger: "UnknownLogger"):  # noqa: F821
                pass

        with pytest.raises(InjectionError) as exc_info:
            container.resolve(Service)

        assert exc_info.value.reason.startswith("Reflection error")

    def test_custom_prefix(self):
        """Test that the setter prefix is configurable."""
        container = Container(ContainerSettings(setter_prefix="inject_"))

        class Service:
            storage = None
            logger = None

            def inject_storage(self, storage: Storage):
                self.storage = storage

            def set_logger(self, logger: Logger):
                self.logger = logger

        service = container.resolve(Service)

        assert isinstance(service.storage, Storage)
        assert service.logger is None

    def test_disabled(self):
        """Test that setter injection can be switched off."""
        container = Container(ContainerSettings(setter_injection=False))

        class Service:
            storage = None

            def set_storage(self, storage: Storage):
                self.storage = storage

        assert container.resolve(Service).storage is None

    def test_setter_cycle(self):
        """Test that cycles through setters are reported with the cycle as cause."""
        container = Container()

        with pytest.raises(InjectionError) as exc_info:
            container.resolve(SetterA)

        causes = []
        error = exc_info.value
        while error is not None:
            causes.append(error)
            error = error.__cause__

        circular = [cause for cause in causes if isinstance(cause, CircularDependencyError)]
        assert circular
        assert circular[0].dependency_chain == [SetterA, SetterB, SetterA]
        assert container.dependency_chain == []


class TestContextualInjection:
    """Test cases for contextual bindings during injection."""

    def test_property_uses_contextual_binding(self, container):
        """Test that property injection consults the consumer's overrides."""

        class Service:
            logger: Annotated[Logger, Inject()]

        container.when(Service).needs(Logger).give(FileLogger)

        assert isinstance(container.resolve(Service).logger, FileLogger)

    def test_setter_uses_contextual_binding(self, container):
        """Test that setter injection consults the consumer's overrides."""

        class Service:
            def set_logger(self, logger: Logger):
                self.logger = logger

        container.when(Service).needs(Logger).give(FileLogger)

        assert isinstance(container.resolve(Service).logger, FileLogger)
