"""
Domain layer - Core models and rules of the container.

This layer contains the value objects, exception taxonomy and interfaces used
by the resolution engine. It has no dependencies on other layers.
"""

from .enums import InjectionType, Lifetime, ParameterKind
from .exceptions import (
    AutowiringError,
    BindingError,
    CircularDependencyError,
    ContainerError,
    InjectionError,
    InstantiationError,
    ResolutionError,
    ServiceAlreadyBoundError,
    ServiceNotFoundError,
)
from .identifiers import ServiceId, is_concrete, is_protocol, is_user_class, service_name
from .interfaces import IContainer, ILifetimeManager, IResolver, IServiceProvider
from .markers import Inject
from .models import Binding, ContextualBinding, InjectionPoint, ParameterSpec, ResolutionContext
from .settings import ContainerSettings

__all__ = [
    # Enums
    "Lifetime",
    "ParameterKind",
    "InjectionType",
    # Exceptions
    "ContainerError",
    "ServiceNotFoundError",
    "ServiceAlreadyBoundError",
    "CircularDependencyError",
    "BindingError",
    "ResolutionError",
    "AutowiringError",
    "InstantiationError",
    "InjectionError",
    # Identifiers
    "ServiceId",
    "service_name",
    "is_user_class",
    "is_protocol",
    "is_concrete",
    # Interfaces
    "IContainer",
    "IResolver",
    "ILifetimeManager",
    "IServiceProvider",
    # Models
    "Binding",
    "ContextualBinding",
    "InjectionPoint",
    "ParameterSpec",
    "ResolutionContext",
    "Inject",
    "ContainerSettings",
]
