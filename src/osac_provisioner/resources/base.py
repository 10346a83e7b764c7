"""Base resource class for OSAC resources."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, computed_field


class Resource(BaseModel):
    """Base class for all OSAC resources.

    Resources are pure data - they define the desired state.
    Handlers know how to CRUD resources.
    """

    model_config = ConfigDict(extra="forbid")

    resource_type: ClassVar[str]
    namespace: ClassVar[str]
    plan_priority: ClassVar[int] = 100

    name: str = Field(pattern=r"^[a-zA-Z0-9_-]+$")

    @computed_field
    @property
    def address(self) -> str:
        """Unique address for this resource (e.g., 'osac_cluster.prod')."""
        return f"{self.resource_type}.{self.name}"


class HostSet(BaseModel):
    """A named group of hosts of one class.

    Clusters call these node sets, host pools call them host sets.
    """

    model_config = ConfigDict(extra="forbid")

    host_class: str = Field(min_length=1)
    size: int = Field(ge=0)
