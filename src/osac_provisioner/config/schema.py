"""Configuration models for YAML-based provisioning."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from osac_provisioner.engine.waiter import (
    DEFAULT_CREATE_TIMEOUT,
    DEFAULT_MIN_POLL_INTERVAL,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_UPDATE_TIMEOUT,
    WaitOptions,
)
from osac_provisioner.resources.base import Resource  # noqa: TC001
from osac_provisioner.resources.cluster import ClusterResource  # noqa: TC001
from osac_provisioner.resources.compute_instance import ComputeInstanceResource  # noqa: TC001
from osac_provisioner.resources.host import HostResource  # noqa: TC001
from osac_provisioner.resources.host_pool import HostPoolResource  # noqa: TC001


class ProviderConfig(BaseSettings):
    """Fulfillment service connection settings.

    Fields can be set via YAML (constructor kwargs) or environment variables
    with the ``OSAC_`` prefix.  Constructor kwargs take precedence.

    ``token`` is typically provided via the ``OSAC_TOKEN`` environment
    variable rather than YAML to avoid committing secrets to version control.
    """

    model_config = SettingsConfigDict(env_prefix="OSAC_")

    endpoint: str | None = None
    token: str | None = None
    insecure: bool = False
    plaintext: bool = False


class TimeoutsConfig(BaseModel):
    """Wait timeouts and poll intervals, in seconds."""

    model_config = ConfigDict(extra="forbid")

    create: float = Field(default=DEFAULT_CREATE_TIMEOUT, gt=0)
    update: float = Field(default=DEFAULT_UPDATE_TIMEOUT, gt=0)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    min_poll_interval: float = Field(default=DEFAULT_MIN_POLL_INTERVAL, gt=0)

    def wait_options(self) -> WaitOptions:
        return WaitOptions(
            create_timeout=self.create,
            update_timeout=self.update,
            poll_interval=self.poll_interval,
            min_poll_interval=self.min_poll_interval,
        )


def _none_to_list(v: Any) -> Any:
    return v if v is not None else []


def _none_to_dict(v: Any) -> Any:
    return v if v is not None else {}


class Config(BaseModel):
    """Top-level configuration file: provider, timeouts and declared resources."""

    provider: ProviderConfig
    state_path: Path = Path(".osac-state.json")
    timeouts: Annotated[TimeoutsConfig, BeforeValidator(_none_to_dict)] = TimeoutsConfig()
    host_pools: Annotated[list[HostPoolResource], BeforeValidator(_none_to_list)] = []
    hosts: Annotated[list[HostResource], BeforeValidator(_none_to_list)] = []
    clusters: Annotated[list[ClusterResource], BeforeValidator(_none_to_list)] = []
    compute_instances: Annotated[
        list[ComputeInstanceResource],
        BeforeValidator(_none_to_list),
    ] = []
    config_dir: Path = Path()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def resources(self) -> list[Resource]:
        """Every declared resource; the engine orders them by plan priority."""
        return [*self.host_pools, *self.hosts, *self.clusters, *self.compute_instances]
