from typing import Any, Dict, List, Optional, Sequence

from lattice_di.domain.identifiers import service_name

_MESSAGE_CONTEXT_KEYS = ("operation", "error")


class ContainerError(Exception):
    """Base exception for container errors.

    Also raised directly for unexpected failures coming from user supplied
    factories, constructors, extensions and providers.

    Attributes:
        service_id: Identifier of the service that failed.
        dependency_chain: Services mid-resolution when the error was raised.
        context: Structured details about the failure.
    """

    def __init__(
        self,
        message: str,
        service_id: Any = "unknown",
        dependency_chain: Optional[Sequence[Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.service_id = service_id
        self.dependency_chain: List[Any] = list(dependency_chain or [])
        self.context: Dict[str, Any] = dict(context or {})
        super().__init__(self._enhance_message(message))

    def _enhance_message(self, message: str) -> str:
        enhanced = message

        if len(self.dependency_chain) > 1:
            chain = " -> ".join(service_name(item) for item in self.dependency_chain)
            enhanced += f" [Dependency Chain: {chain}]"

        for key in _MESSAGE_CONTEXT_KEYS:
            value = self.context.get(key)
            if isinstance(value, (str, int, float, bool)):
                enhanced += f" [{key}: {value}]"

        return enhanced


class ServiceNotFoundError(ContainerError):
    """Raised when a service has no binding and is not a constructible class."""

    def __init__(
        self,
        service_id: Any,
        dependency_chain: Optional[Sequence[Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = f'Service "{service_name(service_id)}" not found'
        operation = (context or {}).get("operation")
        if operation:
            message += f" during {operation} operation"
        super().__init__(message, service_id, dependency_chain, context)

    def _enhance_message(self, message: str) -> str:
        # The operation is already part of the message.
        if len(self.dependency_chain) > 1:
            chain = " -> ".join(service_name(item) for item in self.dependency_chain)
            message += f" [Dependency Chain: {chain}]"
        return message


class CircularDependencyError(ContainerError):
    """Raised when a circular dependency is detected.

    Attributes:
        dependency_chain: Full resolution chain ending with the repeated service.
        cycle: Slice of the chain from the first occurrence of the repeated
            service through the repeat.
    """

    def __init__(
        self,
        service_id: Any,
        dependency_chain: Sequence[Any],
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        chain = list(dependency_chain)
        start = chain.index(service_id) if service_id in chain else 0
        self.cycle: List[Any] = chain[start:]
        message = f'Circular dependency detected when resolving "{service_name(service_id)}"'
        super().__init__(message, service_id, chain, context)

    def _enhance_message(self, message: str) -> str:
        if not self.dependency_chain:
            return message
        chain = " -> ".join(service_name(item) for item in self.dependency_chain)
        cycle = " -> ".join(service_name(item) for item in self.cycle)
        return f"{message}: {chain} (cycle: {cycle})"


class BindingError(ContainerError):
    """Raised when a registered implementation cannot be used to build the service."""


class ServiceAlreadyBoundError(BindingError):
    """Raised when registering a service that is already bound without override."""

    def __init__(
        self,
        service_id: Any,
        dependency_chain: Optional[Sequence[Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = f'Service "{service_name(service_id)}" is already bound'
        existing = (context or {}).get("existing_binding")
        if existing:
            lifetime = "shared" if existing.get("shared") else "non-shared"
            message += f" (existing {lifetime} {existing.get('type')})"
        super().__init__(message, service_id, dependency_chain, context)


class ResolutionError(ContainerError):
    """Raised when introspection or a binding factory fails during resolution."""


class AutowiringError(ResolutionError):
    """Raised when a constructor or setter parameter cannot be autowired.

    Attributes:
        parameter: Name of the parameter.
        parameter_type: Rendered type of the parameter ("unknown" when untyped).
        reason: Short explanation, empty when the cause speaks for itself.
    """

    def __init__(
        self,
        cls: Any,
        parameter: str,
        parameter_type: str,
        dependency_chain: Optional[Sequence[Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = dict(context or {})
        self.parameter = parameter
        self.parameter_type = parameter_type
        self.reason = self._determine_reason(parameter_type, context)

        message = f'Cannot autowire parameter "{parameter}" of type "{parameter_type}" in class "{service_name(cls)}"'
        if self.reason:
            message += f": {self.reason}"

        context["parameter"] = parameter
        context["parameter_type"] = parameter_type
        super().__init__(message, cls, dependency_chain, context)

    @staticmethod
    def _determine_reason(parameter_type: str, context: Dict[str, Any]) -> str:
        if "union_types" in context:
            return f"cannot autowire union types ({' | '.join(context['union_types'])})"
        if parameter_type == "unknown":
            return "parameter has no type hint"
        if context.get("is_builtin"):
            return "cannot autowire built-in types"
        return ""


class InstantiationError(ResolutionError):
    """Raised when the target class is abstract.

    Attributes:
        reason: Why the class cannot be instantiated.
    """

    def __init__(
        self,
        cls: Any,
        reason: str,
        dependency_chain: Optional[Sequence[Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.reason = reason
        message = f'Class "{service_name(cls)}" could not be instantiated: {reason}'
        super().__init__(message, cls, dependency_chain, context)


class InjectionError(ResolutionError):
    """Raised when property or setter injection fails.

    Attributes:
        target: Name of the property or method.
        injection_type: "property" or "method".
        reason: Why the injection failed.
    """

    def __init__(
        self,
        cls: Any,
        target: str,
        injection_type: str,
        reason: str,
        dependency_chain: Optional[Sequence[Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = dict(context or {})
        self.target = target
        self.injection_type = str(injection_type)
        self.reason = reason

        message = f'Failed to inject {self.injection_type} "{target}" in class "{service_name(cls)}": {reason}'

        context["target"] = target
        context["injection_type"] = self.injection_type
        context["injection_reason"] = reason
        super().__init__(message, cls, dependency_chain, context)
