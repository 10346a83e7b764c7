"""Host pool resource model."""

from __future__ import annotations

from typing import Annotated, ClassVar

from pydantic import Field

from osac_provisioner.resources.base import HostSet, Resource
from osac_provisioner.resources.markers import Compare, SpecParam


class HostPoolResource(Resource):
    """A pool of hosts grouped into named host sets.

    Host sets are resized in place; the fulfillment service assigns the
    actual hosts.
    """

    resource_type: ClassVar[str] = "osac_host_pool"
    namespace: ClassVar[str] = "host_pool"
    plan_priority: ClassVar[int] = 10

    host_sets: Annotated[dict[str, HostSet], SpecParam("host_sets"), Compare("exact")] = Field(
        default_factory=dict
    )
