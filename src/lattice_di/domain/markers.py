from typing import Optional, Type

from pydantic import BaseModel, ConfigDict, Field


class Inject(BaseModel):
    """Marks a class attribute for property injection.

    Used as ``typing.Annotated`` metadata. Without an argument, the annotated
    type is resolved; with one, the given class is resolved instead.

    Example:
        >>> class ReportService:
        ...     logger: Annotated[Logger, Inject()]
        ...     storage: Annotated[Storage, Inject(S3Storage)]
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    dependency: Optional[Type] = Field(
        default=None,
        description="Explicit class to inject instead of the annotated type.",
    )

    def __init__(self, dependency: Optional[Type] = None) -> None:
        super().__init__(dependency=dependency)
