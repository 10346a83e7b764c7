"""Remote object model and the service interface reconcilers talk to."""

from __future__ import annotations

from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field


class Metadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""


class RemoteStatus(BaseModel):
    """Status block reported by the fulfillment service.

    Only ``state`` is interpreted; kind-specific fields (``api_url``,
    ``ip_address``, ``hosts``, ...) are kept as extra attributes and passed
    through untouched.
    """

    model_config = ConfigDict(extra="allow")

    state: str = ""

    def get(self, name: str, default: Any = None) -> Any:
        """Look up a kind-specific status field."""
        extra = self.model_extra or {}
        return extra.get(name, default)


class RemoteObject(BaseModel):
    """An object as reported by the fulfillment service.

    ``status`` is ``None`` until the service has started processing it.
    """

    model_config = ConfigDict(extra="allow")

    id: str = ""
    metadata: Metadata | None = None
    spec: dict[str, Any] = Field(default_factory=dict)
    status: RemoteStatus | None = None

    @property
    def name(self) -> str | None:
        return self.metadata.name if self.metadata is not None else None


class ResourceService(Protocol):
    """CRUD operations for one kind of fulfillment object."""

    def create(self, obj: dict[str, Any]) -> RemoteObject: ...

    def get(self, object_id: str) -> RemoteObject: ...

    def update(self, object_id: str, obj: dict[str, Any]) -> RemoteObject: ...

    def delete(self, object_id: str) -> None: ...
