"""Application layer - Storage for bindings, contextual overrides, tags and extensions.

The registries only store and look up records. Validation and existence checks
are performed by the container before records reach them.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Type

from lattice_di.domain import Binding, ContextualBinding, ServiceId

Extension = Callable[[Any, Any], Any]


class BindingRegistry:
    """Maps service identifiers to their binding."""

    def __init__(self) -> None:
        self._bindings: Dict[ServiceId, Binding] = {}

    def __contains__(self, service_id: ServiceId) -> bool:
        return service_id in self._bindings

    def add(self, binding: Binding) -> None:
        """Store a binding, replacing any previous one for the same service."""
        self._bindings[binding.service_id] = binding

    def get(self, service_id: ServiceId) -> Optional[Binding]:
        return self._bindings.get(service_id)

    def remove(self, service_id: ServiceId) -> None:
        self._bindings.pop(service_id, None)

    def clear(self) -> None:
        self._bindings.clear()

    def copy(self) -> "BindingRegistry":
        registry = BindingRegistry()
        registry._bindings = self._bindings.copy()
        return registry


class ContextualBindingStore:
    """Maps (consumer, dependency) pairs to contextual overrides.

    Lookups are exact: the store does no MRO walk, and a binding registered
    for a consumer never applies to that consumer's own dependencies.
    """

    def __init__(self) -> None:
        self._bindings: Dict[Type, Dict[Type, ContextualBinding]] = {}

    def add(self, binding: ContextualBinding) -> None:
        self._bindings.setdefault(binding.consumer, {})[binding.dependency] = binding

    def get(self, consumer: Type, dependency: Type) -> Optional[ContextualBinding]:
        return self._bindings.get(consumer, {}).get(dependency)

    def has(self, consumer: Type, dependency: Optional[Type] = None) -> bool:
        if dependency is None:
            return consumer in self._bindings
        return self.get(consumer, dependency) is not None

    def forget(self, consumer: Type, dependency: Optional[Type] = None) -> None:
        """Remove every override of a consumer, or only the one for a dependency."""
        if consumer not in self._bindings:
            return

        if dependency is None:
            del self._bindings[consumer]
            return

        self._bindings[consumer].pop(dependency, None)
        if not self._bindings[consumer]:
            del self._bindings[consumer]

    def purge_references(self, service_id: ServiceId) -> int:
        """Remove overrides whose implementation is a reference to the service.

        Factories that happen to build the service are not tracked.

        Returns:
            Number of overrides removed.
        """
        removed = 0
        for consumer in list(self._bindings):
            bindings = self._bindings[consumer]
            for dependency, binding in list(bindings.items()):
                if binding.is_reference and binding.implementation == service_id:
                    del bindings[dependency]
                    removed += 1
            if not bindings:
                del self._bindings[consumer]
        return removed

    def clear(self) -> None:
        self._bindings.clear()

    def copy(self) -> "ContextualBindingStore":
        store = ContextualBindingStore()
        store._bindings = {consumer: bindings.copy() for consumer, bindings in self._bindings.items()}
        return store


class TagRegistry:
    """Maps tag names to an ordered, duplicate-free list of services."""

    def __init__(self) -> None:
        self._tags: Dict[str, List[ServiceId]] = {}

    def __contains__(self, tag: str) -> bool:
        return tag in self._tags

    def tag(self, tag: str, ids: Iterable[ServiceId], merge: bool = True) -> None:
        """Tag services, merging with or replacing the current members.

        Args:
            tag: Tag name.
            ids: Services to tag.
            merge: Whether to keep the services already under the tag.
        """
        current = self._tags.get(tag, []) if merge else []
        self._tags[tag] = list(dict.fromkeys([*current, *ids]))

    def untag(self, tag: str, ids: Iterable[ServiceId]) -> None:
        if tag not in self._tags:
            return
        removed = set(ids)
        self._tags[tag] = [service_id for service_id in self._tags[tag] if service_id not in removed]

    def get(self, tag: str) -> List[ServiceId]:
        return list(self._tags.get(tag, []))

    def clear(self) -> None:
        self._tags.clear()

    def copy(self) -> "TagRegistry":
        registry = TagRegistry()
        registry._tags = {tag: ids.copy() for tag, ids in self._tags.items()}
        return registry


class ExtensionRegistry:
    """Maps services to the decorators applied after construction, in order."""

    def __init__(self) -> None:
        self._extensions: Dict[ServiceId, List[Extension]] = {}

    def add(self, service_id: ServiceId, extension: Extension) -> None:
        self._extensions.setdefault(service_id, []).append(extension)

    def get(self, service_id: ServiceId) -> List[Extension]:
        return list(self._extensions.get(service_id, []))

    def forget(self, service_id: ServiceId) -> None:
        self._extensions.pop(service_id, None)

    def clear(self) -> None:
        self._extensions.clear()

    def copy(self) -> "ExtensionRegistry":
        registry = ExtensionRegistry()
        registry._extensions = {service_id: exts.copy() for service_id, exts in self._extensions.items()}
        return registry
