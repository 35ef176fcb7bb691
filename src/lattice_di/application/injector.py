"""Application layer - Property and setter injection after construction."""

import inspect
import logging
from typing import Annotated, Any, Dict, List, Type, get_args, get_origin, get_type_hints

from lattice_di.domain import (
    ContainerError,
    ContainerSettings,
    IContainer,
    Inject,
    InjectionError,
    InjectionPoint,
    InjectionType,
    ParameterKind,
    service_name,
)
from lattice_di.application.resolver import DependencyResolver

logger = logging.getLogger(__name__)


class DependencyInjector:
    """Injects dependencies into constructed instances.

    Two passes run in order, both fail-fast:

    - Property pass: every class attribute annotated with
      ``Annotated[SomeType, Inject()]`` is resolved and assigned.
    - Setter pass: every public method named with the configured prefix that
      takes exactly one class-typed parameter is called with the resolved
      dependency. Other methods are not injection points and are skipped.

    Both passes consult contextual bindings for the instance's class first.
    """

    def __init__(self, resolver: DependencyResolver, settings: ContainerSettings) -> None:
        self._resolver = resolver
        self._settings = settings

    def inject(self, instance: Any, container: IContainer) -> None:
        """Run the enabled injection passes on an instance.

        Raises:
            InjectionError: If any injection point cannot be satisfied.
        """
        if self._settings.property_injection:
            self.inject_properties(instance, container)
        if self._settings.setter_injection:
            self.inject_setters(instance, container)

    def injection_points(self, cls: Type) -> List[InjectionPoint]:
        """Collect the ``Inject`` marked attributes of a class, base classes included."""
        points: List[InjectionPoint] = []
        for name, hint in self._class_annotations(cls).items():
            if get_origin(hint) is not Annotated:
                continue
            markers = [meta for meta in hint.__metadata__ if isinstance(meta, Inject)]
            if not markers:
                continue
            points.append(
                InjectionPoint(
                    name=name,
                    declared_type=get_args(hint)[0],
                    explicit_override=markers[0].dependency,
                )
            )
        return points

    def inject_properties(self, instance: Any, container: IContainer) -> None:
        cls = type(instance)

        for point in self.injection_points(cls):
            dependency = point.target_type
            if dependency is None:
                raise InjectionError(
                    cls,
                    point.name,
                    InjectionType.PROPERTY,
                    "No dependency type specified and no type hint available",
                    container.dependency_chain,
                    {"has_marker": True, "declared_type": repr(point.declared_type)},
                )

            if not self._is_public_writable(cls, point.name):
                raise InjectionError(
                    cls,
                    point.name,
                    InjectionType.PROPERTY,
                    f'Property "{point.name}" is not public',
                    container.dependency_chain,
                    {"dependency": service_name(dependency)},
                )

            try:
                value = container.resolve_dependency(cls, dependency)
            except ContainerError as e:
                raise InjectionError(
                    cls,
                    point.name,
                    InjectionType.PROPERTY,
                    f"Failed to resolve property dependencies: {e}",
                    container.dependency_chain,
                    {"original_exception": type(e).__name__, "dependency": service_name(dependency)},
                ) from e

            try:
                setattr(instance, point.name, value)
            except (AttributeError, TypeError, ValueError) as e:
                raise InjectionError(
                    cls,
                    point.name,
                    InjectionType.PROPERTY,
                    f"Unexpected error: {e}",
                    container.dependency_chain,
                    {"error_type": type(e).__name__},
                ) from e

            logger.debug("Injected %s into %s.%s", service_name(dependency), service_name(cls), point.name)

    def inject_setters(self, instance: Any, container: IContainer) -> None:
        cls = type(instance)
        prefix = self._settings.setter_prefix

        for name in dir(cls):
            if name.startswith("_") or not name.startswith(prefix):
                continue

            function = inspect.getattr_static(cls, name, None)
            # Static and class methods are not setters
            if not inspect.isfunction(function):
                continue

            try:
                signature = inspect.signature(function)
                type_hints = get_type_hints(function)
            except (NameError, TypeError, ValueError) as e:
                raise InjectionError(
                    cls,
                    name,
                    InjectionType.METHOD,
                    f"Reflection error: {e}",
                    container.dependency_chain,
                    {"error_type": type(e).__name__},
                ) from e

            parameters = [param for param_name, param in signature.parameters.items() if param_name != "self"]
            if len(parameters) != 1:
                continue

            param = parameters[0]
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue
            if param.name not in type_hints:
                continue

            classification = self._resolver.classify(type_hints[param.name])
            if classification.kind is not ParameterKind.DEPENDENCY:
                continue

            dependency = classification.dependency
            optional = param.default is not inspect.Parameter.empty or classification.nullable
            if optional and not container.has(dependency):
                continue

            try:
                value = container.resolve_dependency(cls, dependency)
                getattr(instance, name)(value)
            except ContainerError as e:
                raise InjectionError(
                    cls,
                    name,
                    InjectionType.METHOD,
                    f"Failed to resolve method dependencies: {e}",
                    container.dependency_chain,
                    {"original_exception": type(e).__name__, "dependency": service_name(dependency)},
                ) from e
            except Exception as e:
                raise InjectionError(
                    cls,
                    name,
                    InjectionType.METHOD,
                    f"Unexpected error: {e}",
                    container.dependency_chain,
                    {"error_type": type(e).__name__},
                ) from e

            logger.debug("Injected %s through %s.%s()", service_name(dependency), service_name(cls), name)

    def _class_annotations(self, cls: Type) -> Dict[str, Any]:
        try:
            return get_type_hints(cls, include_extras=True)
        except (NameError, TypeError):
            pass

        # Unresolvable forward references: keep the annotations that are already objects
        annotations: Dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            try:
                raw = inspect.get_annotations(klass)
            except NameError:
                continue
            annotations.update({name: hint for name, hint in raw.items() if not isinstance(hint, str)})
        return annotations

    @staticmethod
    def _is_public_writable(cls: Type, name: str) -> bool:
        if name.startswith("_"):
            return False
        attribute = inspect.getattr_static(cls, name, None)
        if isinstance(attribute, property) and attribute.fset is None:
            return False
        return True
