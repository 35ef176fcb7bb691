"""Application layer - Circular dependency detection."""

from typing import Any, Dict, List, Optional

from lattice_di.domain import ResolutionContext, ServiceId


class CircularDependencyDetector:
    """Detects circular dependencies during resolution.

    Tracks the chain of services currently being resolved. When a service is
    pushed while already present, a circular dependency is reported with the
    full chain and the repeated service.

    Containers are not thread-safe: one detector belongs to one container and
    is shared by every nested resolution it performs.

    Attributes:
        _context: The current resolution chain.
    """

    def __init__(self) -> None:
        """Initialize the detector with an empty resolution chain."""
        self._context = ResolutionContext()

    def __contains__(self, service_id: ServiceId) -> bool:
        return service_id in self._context

    @property
    def chain(self) -> List[Any]:
        """Copy of the services currently being resolved, outermost first."""
        return list(self._context.stack)

    def push(self, service_id: ServiceId, context: Optional[Dict[str, Any]] = None) -> None:
        """Add a service to the resolution chain.

        Args:
            service_id: The service being resolved.
            context: Extra details attached to the error if a cycle is found.

        Raises:
            CircularDependencyError: If the service is already being resolved.

        Example:
            >>> detector = CircularDependencyDetector()
            >>> detector.push(ServiceA)
            >>> detector.push(ServiceB)
            >>> detector.push(ServiceA)  # Raises CircularDependencyError
        """
        self._context.push(service_id, context)

    def pop(self) -> None:
        """Remove the most recent service from the resolution chain.

        Called on every exit path of a resolution, successful or not.
        """
        self._context.pop()

    def clear(self) -> None:
        """Clear the entire resolution chain."""
        self._context.clear()
