"""Cluster resource model."""

from __future__ import annotations

from typing import Annotated, ClassVar

from pydantic import Field

from osac_provisioner.resources.base import HostSet, Resource
from osac_provisioner.resources.markers import Compare, ForceNew, SpecParam


class ClusterResource(Resource):
    """An OSAC cluster built from a cluster template.

    ``node_sets`` can be resized in place; changing the template or its
    parameters replaces the cluster.
    """

    resource_type: ClassVar[str] = "osac_cluster"
    namespace: ClassVar[str] = "cluster"

    template: Annotated[str, SpecParam("template"), ForceNew()] = Field(min_length=1)
    template_parameters: Annotated[dict[str, str], ForceNew(), Compare("exact")] = Field(
        default_factory=dict
    )
    node_sets: Annotated[dict[str, HostSet], SpecParam("node_sets"), Compare("exact")] = Field(
        default_factory=dict
    )
