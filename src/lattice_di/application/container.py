import inspect
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Type, Union

from lattice_di.application.circular_detector import CircularDependencyDetector
from lattice_di.application.contextual_builder import ContextualBindingBuilder
from lattice_di.application.injector import DependencyInjector
from lattice_di.application.lifetime_manager import LifetimeManager
from lattice_di.application.registries import (
    BindingRegistry,
    ContextualBindingStore,
    ExtensionRegistry,
    TagRegistry,
)
from lattice_di.application.resolver import DependencyResolver
from lattice_di.domain import (
    Binding,
    BindingError,
    ContainerError,
    ContainerSettings,
    ContextualBinding,
    IContainer,
    Lifetime,
    ResolutionError,
    ServiceAlreadyBoundError,
    ServiceId,
    ServiceNotFoundError,
    is_concrete,
    is_user_class,
    service_name,
)

logger = logging.getLogger(__name__)

Factory = Callable[[IContainer, Dict[str, Any]], Any]
Extension = Callable[[Any, IContainer], Any]


class Container(IContainer):
    """Main dependency injection container.

    Stores bindings, contextual overrides, tags and extensions, and builds
    fully wired object graphs on demand. Unbound concrete classes are
    autowired from their constructor type hints; constructed instances then
    receive property and setter injection.

    Containers are not thread-safe: confine a container to one logical
    execution context or guard it externally.

    Attributes:
        _settings: Immutable container configuration.
        _bindings: Service bindings by identifier.
        _contextual_bindings: Overrides keyed by (consumer, dependency).
        _tags: Services grouped under tag names.
        _extensions: Decorators applied after construction.
        _lifetime_manager: Cache of shared and registered instances.
        _circular_detector: Chain of services currently being resolved.
        _resolver: Component responsible for autowiring constructors.
        _injector: Component responsible for property and setter injection.
    """

    def __init__(self, settings: Optional[ContainerSettings] = None) -> None:
        """Initialize the container with empty registries.

        Args:
            settings: Container configuration, defaults to ``ContainerSettings()``.
        """
        self._settings = settings or ContainerSettings()
        self._bindings = BindingRegistry()
        self._contextual_bindings = ContextualBindingStore()
        self._tags = TagRegistry()
        self._extensions = ExtensionRegistry()
        self._lifetime_manager = LifetimeManager()
        self._circular_detector = CircularDependencyDetector()
        self._resolver = DependencyResolver()
        self._injector = DependencyInjector(self._resolver, self._settings)
        self._providers: List[Any] = []
        self._booted_providers = 0
        self._register_self()

    @property
    def settings(self) -> ContainerSettings:
        return self._settings

    @property
    def dependency_chain(self) -> List[Any]:
        return self._circular_detector.chain

    def _register_self(self) -> None:
        for service_id in (Container, IContainer, type(self)):
            self._lifetime_manager.store(service_id, self, registered=True)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def _ensure_not_bound(self, service_id: ServiceId, override: bool = False) -> None:
        """Raise if the service already has a binding or instance.

        Raises:
            ServiceAlreadyBoundError: When the service is bound and override is False.
        """
        if override or not self.has_binding(service_id):
            return

        binding = self._bindings.get(service_id)
        raise ServiceAlreadyBoundError(
            service_id,
            self.dependency_chain,
            {
                "existing_binding": {
                    "type": "binding" if binding is not None else "instance",
                    "shared": binding.shared if binding is not None else True,
                }
            },
        )

    def _make_factory(
        self,
        service_id: ServiceId,
        implementation: Any,
        context: Optional[Dict[str, Any]] = None,
    ) -> Factory:
        """Turn a class reference or callable into a factory.

        Raises:
            BindingError: If the implementation is neither a user class nor a callable.
        """
        if inspect.isclass(implementation):
            if not is_user_class(implementation):
                raise BindingError(
                    f'Implementation class "{service_name(implementation)}" cannot be autowired',
                    service_id,
                    self.dependency_chain,
                    {"implementation": service_name(implementation), **(context or {})},
                )

            def autowire(container: IContainer, params: Dict[str, Any]) -> Any:
                return container.build(implementation, params)

            return autowire

        if callable(implementation):
            return implementation

        raise BindingError(
            f'Implementation "{implementation!r}" is neither a class nor a callable',
            service_id,
            self.dependency_chain,
            {"implementation": repr(implementation), **(context or {})},
        )

    def bind(
        self,
        service_id: ServiceId,
        implementation: Optional[Any] = None,
        shared: bool = False,
        override: bool = False,
    ) -> "Container":
        """Bind a service to a class or a factory.

        Args:
            service_id: Class or name identifying the service.
            implementation: Class to autowire, or factory receiving ``(container, params)``.
                Defaults to ``service_id`` itself.
            shared: Whether the resolved instance is cached.
            override: Whether an existing binding or instance may be replaced.

        Returns:
            The container, for chaining.

        Raises:
            ServiceAlreadyBoundError: If the service is already bound and override is False.
            BindingError: If the implementation cannot build the service.

        Example:
            >>> container.bind(UserRepository, SqlUserRepository)
            >>> container.bind("config", lambda c, params: Config.from_env(), shared=True)
        """
        self._ensure_not_bound(service_id, override)

        if implementation is None:
            implementation = service_id

        factory = self._make_factory(service_id, implementation)
        lifetime = Lifetime.SINGLETON if shared else Lifetime.TRANSIENT

        # A replaced definition must not be shadowed by its cached instance
        self._lifetime_manager.forget(service_id)
        self._bindings.add(
            Binding(
                service_id=service_id,
                factory=factory,
                lifetime=lifetime,
                implementation=implementation if inspect.isclass(implementation) else None,
            )
        )

        logger.debug("Bound %s as %s", service_name(service_id), lifetime)
        return self

    def singleton(
        self,
        service_id: ServiceId,
        implementation: Optional[Any] = None,
        override: bool = False,
    ) -> "Container":
        """Bind a shared service, resolved once and cached.

        Example:
            >>> container.singleton(Config, lambda c, params: Config("/etc/app.toml"))
            >>> container.resolve(Config) is container.resolve(Config)
            True
        """
        return self.bind(service_id, implementation, True, override)

    def factory(self, service_id: ServiceId, factory: Factory, override: bool = False) -> "Container":
        """Bind a factory invoked on every resolution.

        Example:
            >>> container.factory(Connection, lambda c, params: Connection(params.get("host", "localhost")))
            >>> container.resolve(Connection, {"host": "db1"})
        """
        if inspect.isclass(factory) or not callable(factory):
            raise BindingError(
                f'Factory for "{service_name(service_id)}" must be a callable',
                service_id,
                self.dependency_chain,
                {"implementation": repr(factory)},
            )
        return self.bind(service_id, factory, False, override)

    def instance(self, service_id: ServiceId, instance: Any) -> "Container":
        """Register an existing object as a shared service.

        Raises:
            ServiceAlreadyBoundError: If the service is already bound.
        """
        self._ensure_not_bound(service_id)
        self._lifetime_manager.store(service_id, instance, registered=True)
        logger.debug("Registered instance for %s", service_name(service_id))
        return self

    def has_binding(self, service_id: ServiceId) -> bool:
        return service_id in self._bindings or self._lifetime_manager.has(service_id)

    def has(self, service_id: ServiceId) -> bool:
        return self.has_binding(service_id) or is_concrete(service_id)

    def unbind(self, service_id: ServiceId) -> "Container":
        """Remove a service's binding, cached instance and extensions.

        Contextual bindings giving the service by class reference are removed
        too; factories that happen to build it are left untouched.

        Raises:
            ServiceNotFoundError: If the service has no binding or instance.
        """
        if not self.has_binding(service_id):
            raise ServiceNotFoundError(service_id, self.dependency_chain, {"operation": "unbind"})

        self._bindings.remove(service_id)
        self._lifetime_manager.forget(service_id)
        self._extensions.forget(service_id)
        purged = self._contextual_bindings.purge_references(service_id)

        logger.debug("Unbound %s (%d contextual binding(s) removed)", service_name(service_id), purged)
        return self

    def reset(self) -> "Container":
        """Reset the container to its initial state.

        Every registry is emptied; the container stays registered as itself.
        """
        self._bindings.clear()
        self._contextual_bindings.clear()
        self._tags.clear()
        self._extensions.clear()
        self._lifetime_manager.clear_cache()
        self._circular_detector.clear()
        self._providers.clear()
        self._booted_providers = 0
        self._register_self()

        logger.debug("Container reset")
        return self

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, service_id: ServiceId, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Resolve and return an instance of the requested service.

        Cached instances are returned immediately. Otherwise the binding's
        factory is invoked, or the class is autowired when unbound; extensions
        are applied, shared instances cached and injection passes run.

        Args:
            service_id: The service to resolve.
            params: Constructor arguments matched by parameter name, used verbatim.

        Returns:
            The resolved instance.

        Raises:
            ServiceNotFoundError: If the service is unbound and not a class.
            CircularDependencyError: If the service is already being resolved.
            AutowiringError: If a constructor parameter cannot be resolved.
            InstantiationError: If the class is abstract.
            InjectionError: If property or setter injection fails.
            ResolutionError: If a binding factory fails.
            ContainerError: If a constructor or extension fails unexpectedly.

        Example:
            >>> user_service = container.resolve(UserService)
            >>> report = container.resolve(Report, {"title": "Q3"})
        """
        if self._lifetime_manager.has(service_id):
            logger.debug("Resolved %s from cache", service_name(service_id))
            return self._lifetime_manager.get(service_id)

        params = dict(params or {})
        self._circular_detector.push(service_id, {"parameters": params})

        try:
            binding = self._bindings.get(service_id)
            if binding is not None:
                instance = self._resolve_binding(binding, params)
            else:
                instance = self.build(service_id, params)

            instance = self._apply_extensions(service_id, instance)

            if binding is not None and binding.shared:
                self._lifetime_manager.store(service_id, instance)

            self._injector.inject(instance, self)

            logger.debug("Resolved %s", service_name(service_id))
            return instance

        finally:
            self._circular_detector.pop()

    def get(self, service_id: ServiceId) -> Any:
        """Resolve a service without parameters."""
        return self.resolve(service_id)

    def build(self, cls: Type, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Construct a class through autowiring.

        Bindings, caching, extensions and injection passes are bypassed.
        """
        return self._resolver.build(cls, self, dict(params or {}))

    def resolve_dependency(self, consumer: Type, dependency: Type) -> Any:
        """Resolve a dependency requested by a consumer class.

        A contextual binding registered for exactly this consumer and
        dependency wins over the global binding. It is invoked directly: the
        result is neither cached nor tracked for cycles.
        """
        contextual = self._contextual_bindings.get(consumer, dependency)
        if contextual is None:
            return self.resolve(dependency)

        logger.debug(
            "Using contextual binding for %s in %s",
            service_name(dependency),
            service_name(consumer),
        )

        try:
            return contextual.factory(self, {})
        except ContainerError:
            raise
        except Exception as e:
            raise ResolutionError(
                f'Failed to resolve contextual binding "{service_name(dependency)}" '
                f'for "{service_name(consumer)}": {e}',
                dependency,
                self.dependency_chain,
                {"consumer": service_name(consumer), "error_type": type(e).__name__},
            ) from e

    def _resolve_binding(self, binding: Binding, params: Dict[str, Any]) -> Any:
        try:
            return binding.factory(self, params)
        except ContainerError:
            raise
        except Exception as e:
            raise ResolutionError(
                f'Failed to resolve binding "{service_name(binding.service_id)}": {e}',
                binding.service_id,
                self.dependency_chain,
                {"parameters": params, "error_type": type(e).__name__},
            ) from e

    def _apply_extensions(self, service_id: ServiceId, instance: Any) -> Any:
        for extension in self._extensions.get(service_id):
            try:
                instance = extension(instance, self)
            except ContainerError:
                raise
            except Exception as e:
                raise ContainerError(
                    f'Extension for "{service_name(service_id)}" failed: {e}',
                    service_id,
                    self.dependency_chain,
                    {"operation": "extend", "error_type": type(e).__name__},
                ) from e
        return instance

    # ------------------------------------------------------------------
    # Contextual bindings
    # ------------------------------------------------------------------

    def when(self, consumer: Union[Type, Sequence[Type]]) -> ContextualBindingBuilder:
        """Begin a contextual binding for one or more consumer classes.

        Example:
            >>> container.when(AdminService).needs(Logger).give(AdminLogger)
        """
        consumers = [consumer] if inspect.isclass(consumer) else list(consumer)
        return ContextualBindingBuilder(self, consumers)

    def add_contextual_binding(self, consumer: Type, dependency: Type, implementation: Any) -> "Container":
        """Register an override used when ``consumer`` requests ``dependency``.

        Args:
            consumer: The class receiving the dependency.
            dependency: The dependency type to override.
            implementation: Class to autowire, or factory receiving ``(container, params)``.

        Raises:
            BindingError: If the implementation cannot build the dependency.
        """
        factory = self._make_factory(dependency, implementation, {"consumer": service_name(consumer)})
        self._contextual_bindings.add(
            ContextualBinding(
                consumer=consumer,
                dependency=dependency,
                implementation=implementation,
                factory=factory,
            )
        )

        logger.debug(
            "Added contextual binding: %s needs %s",
            service_name(consumer),
            service_name(dependency),
        )
        return self

    def forget_when(self, consumer: Type, dependency: Optional[Type] = None) -> "Container":
        """Remove every contextual binding of a consumer, or only the one for a dependency."""
        self._contextual_bindings.forget(consumer, dependency)
        return self

    # ------------------------------------------------------------------
    # Tags and extensions
    # ------------------------------------------------------------------

    @staticmethod
    def _as_id_list(ids: Union[ServiceId, Iterable[ServiceId]]) -> List[ServiceId]:
        if isinstance(ids, str) or inspect.isclass(ids):
            return [ids]
        return list(ids)

    def tag(self, tag: str, ids: Iterable[ServiceId], merge: bool = True) -> "Container":
        """Group services under a tag.

        Args:
            tag: Tag name, must not be empty.
            ids: Services to tag; duplicates are dropped.
            merge: Whether to keep the services already under the tag.

        Raises:
            ContainerError: If the tag name is empty.
            ServiceNotFoundError: If any service is unknown to the container.

        Example:
            >>> container.tag("payment", [StripeGateway, PaypalGateway])
            >>> gateways = container.resolve_tagged("payment")
        """
        ids = self._as_id_list(ids)

        if not tag:
            raise ContainerError(
                "Tag name cannot be empty",
                "unknown",
                self.dependency_chain,
                {"services": [service_name(service_id) for service_id in ids], "merge": merge},
            )

        ids = list(dict.fromkeys(ids))
        if not ids:
            return self

        for service_id in ids:
            if not self.has(service_id):
                raise ServiceNotFoundError(
                    service_id,
                    self.dependency_chain,
                    {"tag": tag, "operation": "tag"},
                )

        self._tags.tag(tag, ids, merge)
        logger.debug("Tagged %d service(s) as %r", len(ids), tag)
        return self

    def untag(self, tag: str, ids: Union[ServiceId, Iterable[ServiceId]]) -> "Container":
        """Remove one or more services from a tag. Unknown tags are ignored."""
        self._tags.untag(tag, self._as_id_list(ids))
        return self

    def resolve_tagged(self, tag: str) -> List[Any]:
        """Resolve every service under a tag, in tag order.

        Unknown tags yield an empty list. The first failing service aborts
        the whole call.
        """
        return [self.resolve(service_id) for service_id in self._tags.get(tag)]

    def extend(self, service_id: ServiceId, extension: Extension) -> "Container":
        """Register a decorator applied after the service is constructed.

        Extensions run in registration order, each receiving the previous
        one's result and the container.

        Raises:
            ServiceNotFoundError: If the service is unknown to the container.

        Example:
            >>> container.extend(Logger, lambda logger, c: TimestampedLogger(logger))
        """
        if not self.has(service_id):
            raise ServiceNotFoundError(service_id, self.dependency_chain, {"operation": "extend"})

        if not callable(extension):
            raise BindingError(
                f'Extension for "{service_name(service_id)}" must be a callable',
                service_id,
                self.dependency_chain,
                {"operation": "extend"},
            )

        self._extensions.add(service_id, extension)
        return self

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    def provider(self, provider: Any) -> "Container":
        """Let a service provider register its bindings.

        Args:
            provider: Provider instance, or provider class resolved through the container.
                It must expose ``register(container)`` and may expose ``boot(container)``.

        Raises:
            ContainerError: If the provider cannot be resolved or its registration fails.

        Example:
            >>> container.provider(CacheServiceProvider)
        """
        try:
            instance = self.resolve(provider) if inspect.isclass(provider) else provider
            instance.register(self)
        except Exception as e:
            raise ContainerError(
                f'Failed to register provider "{service_name(provider)}": {e}',
                provider,
                self.dependency_chain,
                {"operation": "provider"},
            ) from e

        self._providers.append(instance)
        logger.debug("Registered provider %s", service_name(type(instance)))
        return self

    def boot(self) -> "Container":
        """Boot every provider registered since the previous call.

        Raises:
            ContainerError: If a provider's ``boot`` fails.
        """
        pending = self._providers[self._booted_providers :]
        for instance in pending:
            boot = getattr(instance, "boot", None)
            if callable(boot):
                try:
                    boot(self)
                except Exception as e:
                    raise ContainerError(
                        f'Failed to boot provider "{service_name(type(instance))}": {e}',
                        type(instance),
                        self.dependency_chain,
                        {"operation": "boot"},
                    ) from e
            self._booted_providers += 1

        logger.debug("Booted %d provider(s)", len(pending))
        return self
