"""Handler interface the engine drives for every resource kind."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from osac_provisioner.engine.waiter import WaitOptions
from osac_provisioner.resources.base import Resource

if TYPE_CHECKING:
    import threading

    from osac_provisioner.core import OSACProvider
    from osac_provisioner.core.state import ResourceInstance

R = TypeVar("R", bound=Resource)


@dataclass(frozen=True)
class EngineContext:
    """What a handler needs for one plan or apply run.

    ``wait`` carries the timeouts and poll intervals; ``cancel`` is set by
    the caller to abort any wait in progress.
    """

    provider: OSACProvider
    wait: WaitOptions = field(default_factory=WaitOptions)
    cancel: threading.Event | None = None

    @property
    def canceled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()


class ResourceHandler(Generic[R]):
    """Reconciles one resource kind against the fulfillment service.

    Every method returns or receives *attributes*: the flat dict stored in
    the state file, with the remote object id under ``"id"``. ``validate``
    runs at plan time and must not call the service.
    """

    def validate(self, ctx: EngineContext, desired: R) -> list[str]:
        """Error messages for *desired*; empty when it can be applied."""
        _ = ctx, desired
        return []

    def read(self, ctx: EngineContext, prior: ResourceInstance) -> dict[str, Any] | None:
        """Current attributes, or None once the object is gone."""
        raise NotImplementedError

    def create(self, ctx: EngineContext, desired: R) -> dict[str, Any]:
        raise NotImplementedError

    def update(self, ctx: EngineContext, desired: R, prior: ResourceInstance) -> dict[str, Any]:
        raise NotImplementedError

    def delete(self, ctx: EngineContext, prior: ResourceInstance) -> None:
        """Remove the object; an object that is already gone is not an error."""
        raise NotImplementedError
