"""YAML configuration loading and convenience plan/apply API."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from pydantic import SecretStr

from osac_provisioner.config.loader import ConfigError, load_config
from osac_provisioner.config.registry import default_registry
from osac_provisioner.config.schema import Config, ProviderConfig, TimeoutsConfig
from osac_provisioner.core.provider import OSACProvider, TokenAuth
from osac_provisioner.core.state import State
from osac_provisioner.engine.data_sources import read_data_source as _read_data_source
from osac_provisioner.engine.engine import OSACEngine, ProgressCallback
from osac_provisioner.engine.types import Action, ResourceChange

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterator
    from pathlib import Path

    from osac_provisioner.engine.types import ApplyResult, Plan

__all__ = [
    "Config",
    "ConfigError",
    "ProviderConfig",
    "State",
    "TimeoutsConfig",
    "apply",
    "drift",
    "load",
    "load_config",
    "plan",
    "plan_and_apply",
    "read_data_source",
    "refresh",
    "save_state",
]


def load(path: Path | str) -> Config:
    """Load a YAML configuration file."""
    return load_config(path)


def _provider_from_config(config: Config) -> OSACProvider:
    if not config.provider.endpoint:
        raise ConfigError("provider.endpoint is required (set in YAML or OSAC_ENDPOINT env var)")
    auth = TokenAuth(token=SecretStr(config.provider.token)) if config.provider.token else None
    return OSACProvider(
        endpoint=config.provider.endpoint,
        auth=auth,
        insecure=config.provider.insecure,
        plaintext=config.provider.plaintext,
    )


def _engine_from_config(config: Config, provider: OSACProvider | None = None) -> OSACEngine:
    """Build an ``OSACEngine`` from a ``Config`` instance."""
    return OSACEngine(
        provider=provider or _provider_from_config(config),
        state_path=config.state_path,
        registry=default_registry(),
        wait=config.timeouts.wait_options(),
    )


@contextmanager
def _open_engine(config: Config) -> Iterator[OSACEngine]:
    """Engine whose HTTP client is closed when the block exits."""
    with _provider_from_config(config) as provider:
        yield _engine_from_config(config, provider)


def plan(config: Config, *, destroy: bool = False, refresh: bool = True) -> Plan:
    """Plan changes for the given configuration."""
    with _open_engine(config) as engine:
        return engine.plan(config.resources, destroy=destroy, refresh=refresh)


def apply(
    plan_obj: Plan,
    config: Config,
    *,
    progress: ProgressCallback | None = None,
    cancel: threading.Event | None = None,
) -> ApplyResult:
    """Apply a previously computed plan."""
    with _open_engine(config) as engine:
        return engine.apply(plan_obj, progress=progress, cancel=cancel)


def plan_and_apply(config: Config, *, destroy: bool = False, refresh: bool = True) -> ApplyResult:
    """Plan and apply in one step."""
    plan_obj = plan(config, destroy=destroy, refresh=refresh)
    return apply(plan_obj, config)


def refresh(config: Config) -> tuple[list[ResourceChange], State]:
    """Refresh state from the fulfillment service (not persisted).

    Returns the list of drift changes and the new state. Call
    :func:`save_state` to persist the returned state to disk.
    """
    with _open_engine(config) as engine:
        old_state, new_state = engine.refresh()
    return _build_drift_changes(old_state, new_state), new_state


def save_state(config: Config, state: State) -> None:
    """Persist state to disk."""
    state.commit(config.state_path)


def drift(config: Config) -> list[ResourceChange]:
    """Detect drift between the state file and the fulfillment service."""
    changes, _ = refresh(config)
    return changes


def read_data_source(config: Config, kind: str, object_id: str) -> dict[str, Any]:
    """Look up one object by kind and id (e.g. ``cluster_template``)."""
    with _provider_from_config(config) as provider:
        return _read_data_source(provider, kind, object_id)


def _attribute_diff(before: dict[str, Any], after: dict[str, Any]) -> dict[str, dict[str, Any]]:
    return {
        k: {"from": before.get(k), "to": after.get(k)}
        for k in sorted(before.keys() | after.keys())
        if before.get(k) != after.get(k)
    }


def _build_drift_changes(old_state: State, new_state: State) -> list[ResourceChange]:
    """Changes between two states, by address.

    Instances whose attributes moved are reported as UPDATE and instances
    that disappeared as DELETE.
    """
    changes: list[ResourceChange] = []
    for addr in sorted(old_state.resources):
        before = old_state.resources[addr]
        after = new_state.resources.get(addr)
        if after is None:
            changes.append(
                ResourceChange(
                    address=addr,
                    resource_type=before.resource_type,
                    action=Action.DELETE,
                    prior=dict(before.attributes),
                )
            )
        elif after.attributes != before.attributes:
            changes.append(
                ResourceChange(
                    address=addr,
                    resource_type=after.resource_type,
                    action=Action.UPDATE,
                    prior=dict(before.attributes),
                    planned=dict(after.attributes),
                    diff=_attribute_diff(before.attributes, after.attributes),
                )
            )
    return changes
