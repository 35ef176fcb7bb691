from typing import TYPE_CHECKING, Any, List, Optional, Type

from lattice_di.domain import BindingError, service_name

if TYPE_CHECKING:
    from lattice_di.application.container import Container


class ContextualBindingBuilder:
    """Fluent builder for contextual bindings.

    Example:
        >>> container.when(AdminService).needs(Logger).give(AdminLogger)
        >>> container.when([ReportService, AuditService]).needs(Storage).give(
        ...     lambda c, params: S3Storage(bucket="reports")
        ... )
    """

    def __init__(self, container: "Container", consumers: List[Type]) -> None:
        self._container = container
        self._consumers = consumers
        self._dependency: Optional[Type] = None

    def needs(self, dependency: Type) -> "ContextualBindingBuilder":
        """Set the dependency type that should be resolved differently."""
        self._dependency = dependency
        return self

    def give(self, implementation: Any) -> "Container":
        """Register the implementation for every consumer.

        Args:
            implementation: Class to autowire or factory receiving ``(container, params)``.

        Returns:
            The container, for chaining.

        Raises:
            BindingError: If ``needs`` was not called or the implementation is invalid.
        """
        if self._dependency is None:
            raise BindingError(
                "needs() must be called before give()",
                "unknown",
                self._container.dependency_chain,
                {"consumers": [service_name(consumer) for consumer in self._consumers]},
            )

        for consumer in self._consumers:
            self._container.add_contextual_binding(consumer, self._dependency, implementation)

        return self._container
