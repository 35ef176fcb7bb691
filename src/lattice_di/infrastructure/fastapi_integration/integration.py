import functools
import inspect
from typing import Any, Awaitable, Callable

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from lattice_di.domain import IContainer, ServiceId


def create_fastapi_dependency(container: IContainer, service_id: ServiceId) -> Callable[[], Any]:
    """Create a FastAPI Depends() callable that resolves from the container.

    The lifetime of the resolved instance follows its binding: shared
    bindings return the same instance on every request.

    Args:
        container: The container to resolve from.
        service_id: The service to resolve when the dependency is called.

    Returns:
        A callable that FastAPI can use with Depends().

    Example:
        >>> container = Container()
        >>> container.singleton(UserRepository, SqlUserRepository)
        >>>
        >>> get_user_repo = create_fastapi_dependency(container, UserRepository)
        >>>
        >>> @app.get("/users")
        >>> async def list_users(repo: UserRepository = Depends(get_user_repo)):
        ...     return await repo.get_all()
    """

    def dependency() -> Any:
        """Resolve the dependency from the container."""
        return container.resolve(service_id)

    return dependency


def create_request_dependency(service_id: ServiceId) -> Callable[[Request], Any]:
    """Create a FastAPI dependency that resolves from the request's container.

    Requires the ContainerMiddleware to be installed.

    Args:
        service_id: The service to resolve.

    Returns:
        A callable that resolves from ``request.state.di_container``.

    Example:
        >>> app.add_middleware(ContainerMiddleware, container=container)
        >>>
        >>> get_mailer = create_request_dependency(Mailer)
        >>>
        >>> @app.post("/invite")
        >>> async def invite(mailer: Mailer = Depends(get_mailer)):
        ...     return mailer.send_invite()
    """

    def request_dependency(request: Request) -> Any:
        """Resolve from the container attached to the request."""
        if not hasattr(request.state, "di_container"):
            raise RuntimeError(
                "Request does not have a DI container. Did you forget to add ContainerMiddleware?"
            )
        container: IContainer = request.state.di_container
        return container.resolve(service_id)

    return request_dependency


class ContainerMiddleware(BaseHTTPMiddleware):
    """Middleware exposing the container on every request.

    A convenience accessor only: every request sees the same container, so no
    state is scoped to a request. It lets handlers and
    ``create_request_dependency`` reach the container through
    ``request.state.di_container`` without importing it, which suits apps
    assembled in a factory or given a ``TestContainer`` in tests.

    Attributes:
        container: The container attached to requests.

    Example:
        >>> app = FastAPI()
        >>> app.add_middleware(ContainerMiddleware, container=container)
        >>>
        >>> @app.get("/")
        >>> async def root(request: Request):
        ...     config = request.state.di_container.resolve(Config)
        ...     return {"name": config.app_name}
    """

    def __init__(self, app: FastAPI, container: IContainer):
        """Initialize the middleware with the application container.

        Args:
            app: The FastAPI/Starlette application.
            container: The container attached to requests.
        """
        super().__init__(app)
        self.container = container

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        """Attach the container to the request and execute the endpoint.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or endpoint handler.

        Returns:
            The response from the endpoint.
        """
        request.state.di_container = self.container
        return await call_next(request)


def inject_dependencies(container: IContainer, **services: ServiceId) -> Callable:
    """Decorator that injects services into an async endpoint function.

    Each keyword names a parameter of the decorated function and the service
    resolved into it when the caller does not supply it. Injected parameters
    are hidden from the endpoint's signature so FastAPI does not treat them
    as request inputs.

    Args:
        container: The container to resolve from.
        **services: Parameter names mapped to service identifiers.

    Returns:
        A decorator function.

    Example:
        >>> @app.get("/users")
        >>> @inject_dependencies(container, user_service=UserService)
        >>> async def list_users(user_service: UserService):
        ...     return await user_service.get_all()
    """

    def decorator(func: Callable) -> Callable:
        """Wrap the function with dependency injection logic."""
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            """Resolve missing services and call the original function."""
            for param_name, service_id in services.items():
                if param_name not in kwargs:
                    kwargs[param_name] = container.resolve(service_id)

            return await func(*args, **kwargs)

        wrapper.__signature__ = signature.replace(
            parameters=[param for param in signature.parameters.values() if param.name not in services]
        )
        return wrapper

    return decorator
