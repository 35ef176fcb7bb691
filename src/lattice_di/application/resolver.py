import inspect
import logging
import types
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple, Type, Union, get_args, get_origin, get_type_hints

from lattice_di.domain import (
    AutowiringError,
    CircularDependencyError,
    ContainerError,
    IContainer,
    InstantiationError,
    IResolver,
    ParameterKind,
    ParameterSpec,
    ResolutionError,
    ServiceNotFoundError,
    is_protocol,
    is_user_class,
    service_name,
)

logger = logging.getLogger(__name__)

_NONE_TYPE = type(None)
_VARIADIC_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)


class TypeClassification(NamedTuple):
    """How a type hint can be satisfied by the container."""

    kind: ParameterKind
    dependency: Optional[Type]
    nullable: bool
    members: List[str]


def type_name(hint: Any) -> str:
    """Render a type hint for error messages."""
    if hint is None or hint is _NONE_TYPE:
        return "None"
    if get_origin(hint) is None and inspect.isclass(hint):
        return hint.__qualname__
    return repr(hint).replace("typing.", "")


def declaring_class(cls: Type, attribute: str) -> Type:
    """Return the first class in the MRO of ``cls`` that defines ``attribute``."""
    return next((klass for klass in cls.__mro__ if attribute in vars(klass)), cls)


class DependencyResolver(IResolver):
    """Resolves constructor dependencies using signatures and type hints.

    Each parameter is classified in declaration order and then satisfied from
    the caller's parameters, the container, its default value or ``None``,
    in that order of preference.
    """

    def classify(self, hint: Any) -> TypeClassification:
        """Classify a type hint.

        ``Optional[X]`` is treated as a nullable ``X``; only unions with two or
        more non-None members are reported as unions.

        Args:
            hint: The evaluated type hint.

        Returns:
            The classification of the hint.
        """
        origin = get_origin(hint)

        if origin is Union or origin is types.UnionType:
            members = get_args(hint)
            non_null = [member for member in members if member is not _NONE_TYPE]
            nullable = len(non_null) < len(members)
            if len(non_null) == 1:
                inner = self.classify(non_null[0])
                return TypeClassification(inner.kind, inner.dependency, nullable, inner.members)
            return TypeClassification(ParameterKind.UNION, None, nullable, [type_name(member) for member in members])

        if origin is None and is_user_class(hint):
            return TypeClassification(ParameterKind.DEPENDENCY, hint, False, [])

        return TypeClassification(ParameterKind.BUILTIN, None, hint is None or hint is _NONE_TYPE, [])

    def analyze(
        self,
        owner: Type,
        function: Callable[..., Any],
        params: Optional[Dict[str, Any]] = None,
        dependency_chain: Optional[Sequence[Any]] = None,
    ) -> List[ParameterSpec]:
        """Classify every parameter of a function in declaration order.

        Args:
            owner: Class the function is looked up on, used in error messages.
            function: The constructor or setter to analyse.
            params: Names supplied by the caller.
            dependency_chain: Chain attached to errors.

        Returns:
            One spec per parameter, ``self`` excluded.

        Raises:
            ResolutionError: If the signature or its type hints cannot be read.
        """
        params = params or {}
        function_name = getattr(function, "__name__", repr(function))

        try:
            signature = inspect.signature(function)
            type_hints = get_type_hints(function)
        except (NameError, TypeError, ValueError) as e:
            raise ResolutionError(
                f'Cannot introspect "{function_name}" of class "{service_name(owner)}": {e}',
                owner,
                dependency_chain,
                {"method": function_name, "error_type": type(e).__name__},
            ) from e

        specs: List[ParameterSpec] = []
        for param_name, param in signature.parameters.items():
            if param_name == "self":
                continue

            has_default = param.default is not inspect.Parameter.empty
            common: Dict[str, Any] = {
                "name": param_name,
                "has_default": has_default,
                "default": param.default if has_default else None,
                "positional_only": param.kind is inspect.Parameter.POSITIONAL_ONLY,
            }

            # *args and **kwargs are never autowired
            if param.kind in _VARIADIC_KINDS:
                specs.append(ParameterSpec(kind=ParameterKind.VARIADIC, **common))
                continue

            if param_name in params:
                specs.append(ParameterSpec(kind=ParameterKind.OVERRIDE, **common))
                continue

            if param_name not in type_hints:
                specs.append(ParameterSpec(kind=ParameterKind.UNTYPED, **common))
                continue

            hint = type_hints[param_name]
            classification = self.classify(hint)
            specs.append(
                ParameterSpec(
                    kind=classification.kind,
                    annotation=hint,
                    dependency=classification.dependency,
                    nullable=classification.nullable,
                    union_members=classification.members,
                    **common,
                )
            )

        return specs

    def resolve_arguments(
        self,
        consumer: Type,
        function: Callable[..., Any],
        container: IContainer,
        params: Optional[Dict[str, Any]] = None,
        declared_by: Optional[Type] = None,
    ) -> Tuple[List[Any], Dict[str, Any]]:
        """Build the arguments needed to call a function of the consumer.

        Args:
            consumer: Class whose function is called.
            function: The constructor or setter to call.
            container: The container to resolve dependencies from.
            params: Values supplied by parameter name, used verbatim.
            declared_by: Class that declares the function, used as the contextual
                binding consumer. Defaults to ``consumer``.

        Returns:
            Positional arguments and keyword arguments.
        """
        params = params or {}
        method = getattr(function, "__name__", "__init__")
        declared_by = declared_by or consumer

        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        for spec in self.analyze(consumer, function, params, container.dependency_chain):
            if spec.kind is ParameterKind.VARIADIC:
                continue

            value = self._resolve_parameter(consumer, declared_by, method, spec, container, params)
            if spec.positional_only:
                args.append(value)
            else:
                kwargs[spec.name] = value

        return args, kwargs

    def build(self, cls: Type, container: IContainer, params: Optional[Dict[str, Any]] = None) -> Any:
        """Resolve all constructor dependencies and create an instance.

        Args:
            cls: The class to instantiate.
            container: The container to resolve dependencies from.
            params: Constructor arguments matched by parameter name.

        Returns:
            The new instance.

        Raises:
            ServiceNotFoundError: If ``cls`` is not a class or is an unbound protocol.
            InstantiationError: If ``cls`` is an abstract class.
            AutowiringError: If a parameter cannot be autowired.
            ContainerError: If the constructor itself raises.

        Example:
            >>> class UserService:
            ...     def __init__(self, db: DatabaseConnection, logger: Logger):
            ...         self.db = db
            ...         self.logger = logger
            >>>
            >>> resolver = DependencyResolver()
            >>> instance = resolver.build(UserService, container)
        """
        params = dict(params or {})
        dependency_chain = container.dependency_chain

        try:
            # Protocols are interfaces: without a binding there is nothing to build
            if not is_user_class(cls) or is_protocol(cls):
                raise ServiceNotFoundError(
                    cls,
                    dependency_chain,
                    {"operation": "resolve_class", "parameters": params},
                )

            self._ensure_instantiable(cls, dependency_chain, params)

            args, kwargs = self.resolve_arguments(
                cls, cls.__init__, container, params, declared_by=declaring_class(cls, "__init__")
            )
            logger.debug("Autowiring %s with %d argument(s)", service_name(cls), len(args) + len(kwargs))
            return cls(*args, **kwargs)

        except ContainerError:
            raise
        except Exception as e:
            raise ContainerError(
                f'Unexpected error resolving class "{service_name(cls)}": {e}',
                cls,
                dependency_chain,
                {"error_type": type(e).__name__, "parameters": params},
            ) from e

    def _ensure_instantiable(self, cls: Type, dependency_chain: Sequence[Any], params: Dict[str, Any]) -> None:
        if not inspect.isabstract(cls):
            return

        abstract_methods = sorted(getattr(cls, "__abstractmethods__", ()))
        raise InstantiationError(
            cls,
            "it is an abstract class",
            dependency_chain,
            {"abstract_methods": abstract_methods, "parameters": params},
        )

    def _resolve_parameter(
        self,
        consumer: Type,
        declared_by: Type,
        method: str,
        spec: ParameterSpec,
        container: IContainer,
        params: Dict[str, Any],
    ) -> Any:
        if spec.kind is ParameterKind.OVERRIDE:
            return params[spec.name]

        if spec.kind is ParameterKind.UNTYPED:
            if spec.has_default:
                return spec.default
            raise AutowiringError(
                consumer,
                spec.name,
                "unknown",
                container.dependency_chain,
                {"method": method, "is_optional": spec.has_default},
            )

        if spec.kind is ParameterKind.UNION:
            if spec.has_fallback:
                return spec.fallback
            raise AutowiringError(
                consumer,
                spec.name,
                type_name(spec.annotation),
                container.dependency_chain,
                {"method": method, "union_types": spec.union_members},
            )

        if spec.kind is ParameterKind.BUILTIN:
            if spec.has_fallback:
                return spec.fallback
            raise AutowiringError(
                consumer,
                spec.name,
                type_name(spec.annotation),
                container.dependency_chain,
                {"method": method, "is_builtin": True},
            )

        dependency = spec.dependency
        try:
            return container.resolve_dependency(declared_by, dependency)
        except ServiceNotFoundError as e:
            if spec.has_fallback:
                return spec.fallback
            raise AutowiringError(
                consumer,
                spec.name,
                service_name(dependency),
                container.dependency_chain,
                {
                    "method": method,
                    "original_exception": type(e).__name__,
                    "original_message": str(e),
                },
            ) from e
        except CircularDependencyError:
            raise
        except ContainerError as e:
            raise AutowiringError(
                consumer,
                spec.name,
                service_name(dependency),
                container.dependency_chain,
                {
                    "method": method,
                    "original_exception": type(e).__name__,
                    "original_message": str(e),
                },
            ) from e
