from typing import Any, Dict

from lattice_di.domain import ILifetimeManager, ServiceId


class LifetimeManager(ILifetimeManager):
    """Caches shared instances for the container's lifetime.

    Instances registered directly and singletons created on first resolution
    are kept apart so that test containers can inherit the former without the
    latter. Once cached, an instance is returned verbatim until explicitly
    forgotten.

    Attributes:
        _registered_instances: Instances registered through ``Container.instance``.
        _singleton_cache: Shared instances created during resolution.
    """

    def __init__(self) -> None:
        """Initialize the lifetime manager with empty caches."""
        self._registered_instances: Dict[ServiceId, Any] = {}
        self._singleton_cache: Dict[ServiceId, Any] = {}

    def has(self, service_id: ServiceId) -> bool:
        return service_id in self._registered_instances or service_id in self._singleton_cache

    def get(self, service_id: ServiceId) -> Any:
        """Return the cached instance for the service.

        Raises:
            KeyError: If nothing is cached for the service.
        """
        if service_id in self._registered_instances:
            return self._registered_instances[service_id]
        return self._singleton_cache[service_id]

    def store(self, service_id: ServiceId, instance: Any, registered: bool = False) -> None:
        if registered:
            self._registered_instances[service_id] = instance
        else:
            self._singleton_cache[service_id] = instance

    def forget(self, service_id: ServiceId) -> None:
        self._registered_instances.pop(service_id, None)
        self._singleton_cache.pop(service_id, None)

    def clear_cache(self) -> None:
        """Clear all cached instances, registered and resolved."""
        self._registered_instances.clear()
        self._singleton_cache.clear()

    def clear_resolved(self) -> None:
        """Clear only the singletons created during resolution."""
        self._singleton_cache.clear()

    def get_registered_copy(self) -> Dict[ServiceId, Any]:
        """Get a copy of the directly registered instances.

        Returns:
            Mapping of service identifiers to registered instances.
        """
        return self._registered_instances.copy()
