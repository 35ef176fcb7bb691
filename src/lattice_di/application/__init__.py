"""
Application layer - Registration and resolution.

This layer orchestrates the domain objects to build object graphs.
It depends only on the Domain layer.
"""

from .circular_detector import CircularDependencyDetector
from .container import Container
from .contextual_builder import ContextualBindingBuilder
from .injector import DependencyInjector
from .lifetime_manager import LifetimeManager
from .registries import BindingRegistry, ContextualBindingStore, ExtensionRegistry, TagRegistry
from .resolver import DependencyResolver

__all__ = [
    "Container",
    "ContextualBindingBuilder",
    "DependencyResolver",
    "DependencyInjector",
    "LifetimeManager",
    "CircularDependencyDetector",
    "BindingRegistry",
    "ContextualBindingStore",
    "TagRegistry",
    "ExtensionRegistry",
]
