"""Apply operations.

Each operation applies one planned change to the remote service and records
the outcome in the in-memory state. The engine persists state after every
operation that changed it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from osac_provisioner.engine.errors import WaitError
from osac_provisioner.engine.types import Action

if TYPE_CHECKING:
    from osac_provisioner.core.state import State
    from osac_provisioner.engine.handlers import EngineContext
    from osac_provisioner.engine.registry import ResourceTypeRegistry
    from osac_provisioner.engine.types import ResourceChange

logger = logging.getLogger(__name__)


class Operation(Protocol):
    change: ResourceChange

    def run(self, *, ctx: EngineContext, state: State, registry: ResourceTypeRegistry) -> None:
        """Execute this operation, mutating *state*."""


def _desired_object(change: ResourceChange, reg: Any, *, action: str) -> Any:
    if change.desired is None:
        raise ValueError(f"Missing desired config for {action}: {change.address}")

    desired_obj = reg.model.model_validate(change.desired)
    if desired_obj.address != change.address:
        raise ValueError(
            f"Desired address mismatch for {action}: {change.address} != {desired_obj.address}"
        )
    return desired_obj


@dataclass
class CreateOperation:
    change: ResourceChange

    def run(self, *, ctx: EngineContext, state: State, registry: ResourceTypeRegistry) -> None:
        reg = registry.get(self.change.resource_type)
        desired_obj = _desired_object(self.change, reg, action="create")

        try:
            attrs = reg.handler.create(ctx, desired_obj)
        except WaitError as e:
            # The object exists remotely; keep tracking it so the next plan
            # re-sends the full spec to it.
            if e.attributes is not None:
                logger.warning("Marking %s as tainted: %s", self.change.address, e)
                state.record(
                    self.change.address,
                    self.change.resource_type,
                    desired_obj.name,
                    e.attributes,
                    tainted=True,
                )
            raise
        state.record(self.change.address, self.change.resource_type, desired_obj.name, attrs)


@dataclass
class UpdateOperation:
    change: ResourceChange

    def run(self, *, ctx: EngineContext, state: State, registry: ResourceTypeRegistry) -> None:
        reg = registry.get(self.change.resource_type)
        desired_obj = _desired_object(self.change, reg, action="update")

        prior_inst = state.resources[self.change.address]
        attrs = reg.handler.update(ctx, desired_obj, prior_inst)

        prior_inst.touch(attrs, tainted=False)


@dataclass
class DeleteOperation:
    change: ResourceChange

    def run(self, *, ctx: EngineContext, state: State, registry: ResourceTypeRegistry) -> None:
        reg = registry.get(self.change.resource_type)
        prior_inst = state.resources[self.change.address]
        reg.handler.delete(ctx, prior_inst)
        del state.resources[self.change.address]


@dataclass
class ReplaceOperation:
    """Delete the existing object, then create it again from the desired config."""

    change: ResourceChange

    def run(self, *, ctx: EngineContext, state: State, registry: ResourceTypeRegistry) -> None:
        DeleteOperation(self.change).run(ctx=ctx, state=state, registry=registry)
        CreateOperation(self.change).run(ctx=ctx, state=state, registry=registry)


OPERATIONS: dict[Action, type[Operation]] = {
    Action.CREATE: CreateOperation,
    Action.UPDATE: UpdateOperation,
    Action.REPLACE: ReplaceOperation,
    Action.DELETE: DeleteOperation,
}
