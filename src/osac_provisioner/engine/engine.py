"""Plan/apply engine."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Literal

from osac_provisioner import __version__
from osac_provisioner.core.state import State, compute_attributes_hash, compute_state_digest
from osac_provisioner.engine.errors import (
    ApplyCanceled,
    ApplyError,
    DuplicateAddressError,
    StalePlanError,
    ValidationError,
    WaitCanceled,
)
from osac_provisioner.engine.handlers import EngineContext
from osac_provisioner.engine.operations import OPERATIONS
from osac_provisioner.engine.types import Action, ApplyResult, Plan, PlanMetadata, ResourceChange
from osac_provisioner.engine.waiter import WaitOptions
from osac_provisioner.resources.markers import (
    CompareStrategy,
    collect_compare_strategies,
    collect_force_new,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ResourceChange, Literal["start", "done"]], None]

if TYPE_CHECKING:
    import threading
    from collections.abc import Sequence
    from pathlib import Path

    from osac_provisioner.core import OSACProvider
    from osac_provisioner.engine.registry import ResourceTypeRegistry
    from osac_provisioner.resources.base import Resource


def _differs(desired: Any, prior: Any, strategy: CompareStrategy | None = None) -> bool:
    """Whether a declared value differs from the recorded one.

    Dicts are compared on the keys *desired* declares unless *strategy* is
    ``"exact"``, so keys the service fills in do not show up as changes.
    ``"set"`` ignores list order.
    """
    if isinstance(desired, dict) and isinstance(prior, dict) and strategy in (None, "partial"):
        return any(_differs(v, prior.get(k)) for k, v in desired.items())
    if strategy == "set" and isinstance(desired, list) and isinstance(prior, list):
        return set(desired) != set(prior)
    return desired != prior


def _field_diff(
    desired: dict[str, Any],
    prior: dict[str, Any],
    strategies: dict[str, CompareStrategy],
) -> dict[str, dict[str, Any]]:
    return {
        k: {"from": prior.get(k), "to": v}
        for k, v in desired.items()
        if _differs(v, prior.get(k), strategies.get(k))
    }


def _compute_config_digest(resources: Sequence[Resource]) -> str:
    return compute_attributes_hash(
        {r.address: r.model_dump(exclude_none=True, exclude={"address"}) for r in resources}
    )


class OSACEngine:
    """Terraform-like plan/apply engine for OSAC resources."""

    def __init__(
        self,
        *,
        provider: OSACProvider,
        state_path: Path,
        registry: ResourceTypeRegistry,
        wait: WaitOptions | None = None,
    ) -> None:
        self._provider = provider
        self._state_path = state_path
        self._registry = registry
        self._wait = wait or WaitOptions()

    @property
    def state_path(self) -> Path:
        return self._state_path

    def _ctx(self, cancel: threading.Event | None = None) -> EngineContext:
        return EngineContext(provider=self._provider, wait=self._wait, cancel=cancel)

    def _load_state(self) -> State:
        state = State.load_or_create(self._state_path)
        logger.debug("State loaded: serial=%d, %d resources", state.serial, len(state.resources))
        return state

    def _load_state_for_apply(self, plan: Plan) -> State:
        if self._state_path.exists():
            return self._load_state()
        # No state yet: bootstrap from the plan metadata (saved-plan semantics).
        return State(lineage=plan.metadata.state_lineage, serial=plan.metadata.state_serial)

    def _refresh_state_in_place(self, state: State) -> bool:
        logger.debug("Refreshing state from the fulfillment service")
        changed = False
        ctx = self._ctx()

        for address, inst in list(state.resources.items()):
            handler = self._registry.get(inst.resource_type).handler
            attrs = handler.read(ctx, inst)
            if attrs is None:
                logger.info("%s no longer exists remotely; removing from state", address)
                del state.resources[address]
                changed = True
                continue

            if inst.touch(attrs):
                changed = True

        logger.debug("State refreshed, changed=%s", changed)
        return changed

    def refresh(self, *, persist: bool = False) -> tuple[State, State]:
        """Refresh state from the service. Returns (pre_refresh, post_refresh)."""
        state = self._load_state()
        snapshot = state.model_copy(deep=True)
        changed = self._refresh_state_in_place(state)
        if changed and persist:
            state.commit(self._state_path)
        return snapshot, state

    def _classify_change(self, addr: str, resource: Resource, state: State) -> ResourceChange:
        """CREATE, REPLACE, UPDATE or NOOP for one declared resource.

        A tainted instance is updated even without a diff so the full
        desired spec reaches the object again.
        """
        desired = resource.model_dump(exclude_none=True, exclude={"address"})
        prior_inst = state.resources.get(addr)
        prior: dict[str, Any] | None = None
        diff: dict[str, dict[str, Any]] = {}
        forced: list[str] = []
        tainted = False

        if prior_inst is None:
            action = Action.CREATE
        else:
            prior = dict(prior_inst.attributes)
            diff = _field_diff(desired, prior, collect_compare_strategies(resource))
            forced = sorted(set(diff) & collect_force_new(resource))
            tainted = prior_inst.tainted
            if forced:
                action = Action.REPLACE
            elif diff or tainted:
                action = Action.UPDATE
            else:
                action = Action.NOOP

        logger.debug("Classified %s as %s", addr, action.value)
        return ResourceChange(
            address=addr,
            resource_type=resource.resource_type,
            action=action,
            desired=desired,
            prior=prior,
            planned=desired,
            diff=diff or None,
            replace_fields=forced,
            tainted=tainted,
        )

    def _plan_deletes(self, state: State, addrs: set[str]) -> list[ResourceChange]:
        """Plan delete changes, dependents (higher priority number) first."""
        order = sorted(
            addrs,
            key=lambda a: (-self._registry.priority(state.resources[a].resource_type), a),
        )
        return [
            ResourceChange(
                address=addr,
                resource_type=state.resources[addr].resource_type,
                action=Action.DELETE,
                prior=dict(state.resources[addr].attributes),
            )
            for addr in order
        ]

    def plan(
        self, resources: Sequence[Resource], *, destroy: bool = False, refresh: bool = True
    ) -> Plan:
        logger.info(
            "Planning %d resources (destroy=%s, refresh=%s)", len(resources), destroy, refresh
        )
        state = self._load_state()

        if refresh:
            changed = self._refresh_state_in_place(state)
            if changed:
                state.commit(self._state_path)

        desired_by_addr: dict[str, Resource] = {}
        for r in resources:
            if r.address in desired_by_addr:
                raise DuplicateAddressError(r.address)
            self._registry.get(r.resource_type)
            desired_by_addr[r.address] = r

        if not destroy:
            ctx = self._ctx()
            errors: list[str] = []
            for r in desired_by_addr.values():
                errors.extend(self._registry.get(r.resource_type).handler.validate(ctx, r))
            if errors:
                raise ValidationError(errors)

        state_addrs = set(state.resources)
        if destroy:
            changes = self._plan_deletes(state, state_addrs)
        else:
            order = sorted(desired_by_addr, key=lambda a: (desired_by_addr[a].plan_priority, a))
            changes = [self._classify_change(a, desired_by_addr[a], state) for a in order]
            changes.extend(self._plan_deletes(state, state_addrs - set(desired_by_addr)))

        metadata = PlanMetadata(
            created_at=datetime.now(UTC),
            destroy=destroy,
            refresh=refresh,
            state_lineage=state.lineage,
            state_serial=state.serial,
            state_digest=compute_state_digest(state),
            config_digest=_compute_config_digest([] if destroy else resources),
            engine_version=__version__,
        )
        return Plan(metadata=metadata, changes=changes)

    def apply(
        self,
        plan: Plan,
        *,
        progress: ProgressCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> ApplyResult:
        """Apply *plan*, saving state after every operation.

        Creates, replacements and updates run first in plan order, then
        deletes. Setting *cancel* aborts any wait in progress and stops
        the apply before the next operation starts.
        """
        state = self._load_state_for_apply(plan)

        if state.lineage != plan.metadata.state_lineage:
            raise StalePlanError("State lineage changed; re-run plan")
        if state.serial != plan.metadata.state_serial:
            raise StalePlanError("State serial changed; re-run plan")
        if compute_state_digest(state) != plan.metadata.state_digest:
            raise StalePlanError("State digest changed; re-run plan")

        ctx = self._ctx(cancel)
        applied: list[ResourceChange] = []
        ordered = plan.actionable()
        logger.info("Applying %d operations", len(ordered))

        for change in ordered:
            if ctx.canceled:
                logger.warning("Apply canceled before %s", change.address)
                raise ApplyCanceled(applied=applied)
            logger.debug("Applying %s: %s", change.address, change.action.value)
            if progress:
                progress(change, "start")
            digest_before = compute_state_digest(state)
            try:
                OPERATIONS[change.action](change).run(
                    ctx=ctx, state=state, registry=self._registry
                )
            except (KeyboardInterrupt, Exception) as e:
                # Keep whatever the failed operation recorded (a tainted create,
                # the delete half of a replace).
                if compute_state_digest(state) != digest_before:
                    state.commit(self._state_path)
                if isinstance(e, KeyboardInterrupt | WaitCanceled):
                    raise ApplyCanceled(applied=applied) from e
                raise ApplyError(applied=applied, address=change.address, message=str(e)) from e

            if progress:
                progress(change, "done")
            state.commit(self._state_path)
            applied.append(change)

        return ApplyResult(applied=applied)
