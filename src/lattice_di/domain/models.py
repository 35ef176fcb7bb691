import inspect
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from lattice_di.domain.enums import Lifetime, ParameterKind
from lattice_di.domain.exceptions import CircularDependencyError
from lattice_di.domain.identifiers import is_user_class


class Binding(BaseModel):
    """Value object representing a service binding.

    Attributes:
        service_id: The identifier being bound.
        factory: Callable receiving ``(container, params)`` and returning the instance.
        lifetime: Whether the resolved instance is shared.
        implementation: The class reference the factory autowires, if any.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    service_id: Any = Field(..., description="The service identifier being bound.")
    factory: Callable[..., Any] = Field(..., description="Factory receiving the container and parameters.")
    lifetime: Lifetime = Field(default=Lifetime.TRANSIENT, description="The lifetime of the bound service.")
    implementation: Optional[Any] = Field(
        default=None,
        description="Class reference wrapped by the factory, None for plain factories.",
    )

    @property
    def shared(self) -> bool:
        return self.lifetime == Lifetime.SINGLETON


class ContextualBinding(BaseModel):
    """Override used when a specific consumer requests a specific dependency.

    Attributes:
        consumer: The class receiving the dependency.
        dependency: The dependency type being overridden.
        implementation: The class reference or factory given for the override.
        factory: Callable receiving ``(container, params)`` that builds the override.
        shared: Contextual overrides are never cached.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    consumer: Type = Field(..., description="The class receiving the dependency.")
    dependency: Type = Field(..., description="The dependency type being overridden.")
    implementation: Any = Field(..., description="Class reference or factory given for the override.")
    factory: Callable[..., Any] = Field(..., description="Factory building the override.")
    shared: bool = Field(default=False, description="Whether the override is cached.")

    @property
    def is_reference(self) -> bool:
        """True when the override names a class rather than a factory."""
        return inspect.isclass(self.implementation)


class InjectionPoint(BaseModel):
    """Property marked for post-construction injection.

    Attributes:
        name: Attribute name on the instance.
        declared_type: The annotated type of the attribute.
        explicit_override: Type given explicitly to the ``Inject`` marker.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    declared_type: Optional[Any] = None
    explicit_override: Optional[Any] = None

    @property
    def target_type(self) -> Optional[Type]:
        """The dependency to inject, or None when no class can be determined."""
        if self.explicit_override is not None:
            return self.explicit_override
        if is_user_class(self.declared_type):
            return self.declared_type
        return None


class ParameterSpec(BaseModel):
    """Result of analysing a single constructor or setter parameter.

    Attributes:
        name: Parameter name.
        kind: Classification of the parameter.
        annotation: Raw type hint, None when untyped.
        dependency: Class to resolve for DEPENDENCY parameters.
        has_default: Whether the parameter declares a default value.
        default: The default value when ``has_default`` is set.
        nullable: Whether ``None`` is an acceptable value.
        positional_only: Whether the value must be passed positionally.
        union_members: Rendered member names for UNION parameters.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    kind: ParameterKind
    annotation: Optional[Any] = None
    dependency: Optional[Type] = None
    has_default: bool = False
    default: Any = None
    nullable: bool = False
    positional_only: bool = False
    union_members: List[str] = Field(default_factory=list)

    @property
    def has_fallback(self) -> bool:
        return self.has_default or self.nullable

    @property
    def fallback(self) -> Any:
        return self.default if self.has_default else None


class ResolutionContext(BaseModel):
    """Tracks the chain of services currently being resolved.

    Used for circular dependency detection and for the dependency chain
    attached to every container error.

    Attributes:
        stack: Services currently mid-resolution, outermost first.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    stack: List[Any] = Field(
        default_factory=list,
        description="Stack of services currently being resolved.",
    )

    def __contains__(self, service_id: Any) -> bool:
        return service_id in self.stack

    def push(self, service_id: Any, context: Optional[Dict[str, Any]] = None) -> None:
        """Add a service to the resolution stack.

        Args:
            service_id: The service being resolved.
            context: Extra details attached to the error on a cycle.

        Raises:
            CircularDependencyError: If the service is already in the stack.
        """
        if service_id in self.stack:
            raise CircularDependencyError(service_id, self.stack + [service_id], context)
        self.stack.append(service_id)

    def pop(self) -> None:
        """Remove the last (most recent) service from the stack."""
        if self.stack:
            self.stack.pop()

    def clear(self) -> None:
        """Clear the entire resolution stack."""
        self.stack.clear()
