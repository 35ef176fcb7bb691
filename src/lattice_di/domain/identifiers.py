import inspect
from typing import Any, Type, Union

ServiceId = Union[Type[Any], str]

_NON_SERVICE_MODULES = frozenset({"builtins", "typing", "typing_extensions"})


def service_name(service_id: Any) -> str:
    """Render a service identifier for messages and logs."""
    if inspect.isclass(service_id):
        return service_id.__qualname__
    return str(service_id)


def is_user_class(hint: Any) -> bool:
    """Return True if the hint is a class the container may construct or inject.

    Built-in types (``int``, ``str``, ``list``...) and typing special forms are
    never treated as services.
    """
    return inspect.isclass(hint) and hint.__module__ not in _NON_SERVICE_MODULES


def is_protocol(cls: Any) -> bool:
    """Return True if the class is a ``typing.Protocol`` definition."""
    return bool(getattr(cls, "_is_protocol", False))


def is_concrete(service_id: Any) -> bool:
    """Return True if the identifier names a class that can be instantiated."""
    return is_user_class(service_id) and not inspect.isabstract(service_id) and not is_protocol(service_id)
