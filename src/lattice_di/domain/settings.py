from pydantic import BaseModel, ConfigDict, Field


class ContainerSettings(BaseModel):
    """Immutable configuration of a container.

    Attributes:
        setter_prefix: Prefix identifying setter injection methods.
        property_injection: Whether ``Inject`` marked attributes are filled after construction.
        setter_injection: Whether setter methods are invoked after construction.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    setter_prefix: str = Field(
        default="set_",
        min_length=1,
        description="Prefix identifying setter injection methods.",
    )
    property_injection: bool = Field(
        default=True,
        description="Fill Inject-marked attributes after construction.",
    )
    setter_injection: bool = Field(
        default=True,
        description="Invoke setter methods after construction.",
    )
