from enum import Enum


class Lifetime(str, Enum):
    """Defines the lifetime of a bound service.

    Attributes:
        TRANSIENT: New instance created on each resolution.
        SINGLETON: Single instance cached for the container's lifetime.
    """

    TRANSIENT = "transient"
    SINGLETON = "singleton"

    def __str__(self) -> str:
        return self.value


class ParameterKind(str, Enum):
    """Classification of a constructor or setter parameter.

    Attributes:
        OVERRIDE: Value supplied by name in the resolution parameters.
        VARIADIC: ``*args`` or ``**kwargs``, never autowired.
        UNTYPED: No type hint available.
        UNION: Union of two or more non-None types.
        BUILTIN: Built-in or non-class annotation (``int``, ``list[str]``, ``Any``...).
        DEPENDENCY: A class that can be resolved from the container.
    """

    OVERRIDE = "override"
    VARIADIC = "variadic"
    UNTYPED = "untyped"
    UNION = "union"
    BUILTIN = "builtin"
    DEPENDENCY = "dependency"

    def __str__(self) -> str:
        return self.value


class InjectionType(str, Enum):
    """Kind of post-construction injection target."""

    PROPERTY = "property"
    METHOD = "method"

    def __str__(self) -> str:
        return self.value
