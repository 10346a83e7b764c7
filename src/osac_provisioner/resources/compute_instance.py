"""Compute instance resource model."""

from __future__ import annotations

from typing import Annotated, ClassVar

from pydantic import Field

from osac_provisioner.resources.base import Resource
from osac_provisioner.resources.markers import Compare, ForceNew, SpecParam


class ComputeInstanceResource(Resource):
    """An OSAC compute instance built from a compute instance template."""

    resource_type: ClassVar[str] = "osac_compute_instance"
    namespace: ClassVar[str] = "compute_instance"

    template: Annotated[str, SpecParam("template"), ForceNew()] = Field(min_length=1)
    template_parameters: Annotated[dict[str, str], ForceNew(), Compare("exact")] = Field(
        default_factory=dict
    )
