from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Type

from lattice_di.domain.identifiers import ServiceId
from lattice_di.domain.models import ParameterSpec

Params = Mapping[str, Any]


class IContainer(ABC):
    """Abstract interface for dependency injection container operations."""

    @abstractmethod
    def bind(
        self,
        service_id: ServiceId,
        implementation: Optional[Any] = None,
        shared: bool = False,
        override: bool = False,
    ) -> "IContainer":
        """Bind a service to a class or factory.

        Args:
            service_id: The identifier to bind.
            implementation: Class to autowire or factory receiving ``(container, params)``.
            shared: Whether the resolved instance is cached.
            override: Whether an existing registration may be replaced.
        """

    @abstractmethod
    def instance(self, service_id: ServiceId, instance: Any) -> "IContainer":
        """Register a pre-built object as a shared service."""

    @abstractmethod
    def resolve(self, service_id: ServiceId, params: Optional[Params] = None) -> Any:
        """Resolve and return an instance of the requested service.

        Args:
            service_id: The service to resolve.
            params: Constructor arguments matched by parameter name.
        """

    @abstractmethod
    def resolve_dependency(self, consumer: Type, dependency: Type) -> Any:
        """Resolve a dependency on behalf of a consumer, honouring contextual bindings."""

    @abstractmethod
    def build(self, cls: Type, params: Optional[Params] = None) -> Any:
        """Construct a class through autowiring, bypassing bindings and caches."""

    @abstractmethod
    def has(self, service_id: ServiceId) -> bool:
        """Check whether a service is bound or names a concrete class."""

    @abstractmethod
    def has_binding(self, service_id: ServiceId) -> bool:
        """Check whether a service has been explicitly registered."""

    @abstractmethod
    def unbind(self, service_id: ServiceId) -> "IContainer":
        """Remove a registration with its cached instance and extensions."""

    @abstractmethod
    def tag(self, tag: str, ids: Iterable[ServiceId], merge: bool = True) -> "IContainer":
        """Group services under a tag."""

    @abstractmethod
    def resolve_tagged(self, tag: str) -> List[Any]:
        """Resolve every service under a tag."""

    @abstractmethod
    def extend(self, service_id: ServiceId, extension: Callable[[Any, "IContainer"], Any]) -> "IContainer":
        """Register a decorator applied to the service after construction."""

    @abstractmethod
    def add_contextual_binding(
        self,
        consumer: Type,
        dependency: Type,
        implementation: Any,
    ) -> "IContainer":
        """Override a dependency for a single consumer class."""

    @abstractmethod
    def reset(self) -> "IContainer":
        """Clear all registrations and cached instances."""

    @property
    @abstractmethod
    def dependency_chain(self) -> List[Any]:
        """Copy of the services currently being resolved."""


class IResolver(ABC):
    """Abstract interface for constructor introspection and autowiring."""

    @abstractmethod
    def analyze(
        self,
        owner: Type,
        function: Callable[..., Any],
        params: Optional[Params] = None,
        dependency_chain: Optional[Sequence[Any]] = None,
    ) -> List[ParameterSpec]:
        """Classify every parameter of a function in declaration order.

        Args:
            owner: Class the function is looked up on, used in error messages.
            function: The constructor or setter to analyse.
            params: Names supplied by the caller.
            dependency_chain: Chain attached to errors.

        Raises:
            ResolutionError: If the signature or its type hints cannot be read.
        """

    @abstractmethod
    def build(self, cls: Type, container: IContainer, params: Optional[Params] = None) -> Any:
        """Resolve all constructor dependencies and create an instance.

        Args:
            cls: The class to instantiate.
            container: The container to resolve dependencies from.
            params: Constructor arguments matched by parameter name.

        Raises:
            ServiceNotFoundError: If ``cls`` is not a class or is an unbound protocol.
            InstantiationError: If ``cls`` is an abstract class.
            AutowiringError: If a parameter cannot be autowired.
        """


class ILifetimeManager(ABC):
    """Abstract interface for the shared instance cache."""

    @abstractmethod
    def has(self, service_id: ServiceId) -> bool:
        """Check whether an instance is cached for the service."""

    @abstractmethod
    def get(self, service_id: ServiceId) -> Any:
        """Return the cached instance for the service."""

    @abstractmethod
    def store(self, service_id: ServiceId, instance: Any, registered: bool = False) -> None:
        """Cache an instance.

        Args:
            service_id: The service identifier.
            instance: The instance to cache.
            registered: True for instances registered directly rather than resolved.
        """

    @abstractmethod
    def forget(self, service_id: ServiceId) -> None:
        """Drop any cached instance for the service."""

    @abstractmethod
    def clear_cache(self) -> None:
        """Clear every cached instance."""


class IServiceProvider(ABC):
    """Groups related registrations.

    Any object exposing ``register(container)`` is accepted as a provider;
    subclassing is optional.
    """

    @abstractmethod
    def register(self, container: IContainer) -> None:
        """Register bindings on the container."""

    def boot(self, container: IContainer) -> None:
        """Run once after registration, when the host boots the container."""
