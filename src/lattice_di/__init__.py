"""
lattice-di: Type-hint based inversion of control container with autowiring.

Public API exports for the lattice-di package.
"""

# Application exports
from lattice_di.application.container import Container
from lattice_di.application.contextual_builder import ContextualBindingBuilder

# Domain exports
from lattice_di.domain.enums import Lifetime
from lattice_di.domain.exceptions import (
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
from lattice_di.domain.interfaces import IContainer, IServiceProvider
from lattice_di.domain.markers import Inject
from lattice_di.domain.settings import ContainerSettings

__version__ = "0.1.0"

__all__ = [
    # Container
    "Container",
    "ContextualBindingBuilder",
    "ContainerSettings",
    "IContainer",
    "IServiceProvider",
    "Inject",
    # Enums
    "Lifetime",
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
]
