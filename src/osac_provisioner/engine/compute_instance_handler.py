"""Compute instance handler."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from osac_provisioner.engine.classifier import COMPUTE_INSTANCE_STATES
from osac_provisioner.engine.fulfillment_handler import FulfillmentHandler
from osac_provisioner.engine.templated import parameters_errors, read_parameters, with_parameters
from osac_provisioner.resources.compute_instance import ComputeInstanceResource

if TYPE_CHECKING:
    from osac_provisioner.core.service import RemoteObject
    from osac_provisioner.engine.handlers import EngineContext


class ComputeInstanceHandler(FulfillmentHandler[ComputeInstanceResource]):
    """Provisions compute instances and waits for them to become ready."""

    collection = "compute_instances"
    table = COMPUTE_INSTANCE_STATES
    model = ComputeInstanceResource

    def validate(self, ctx: EngineContext, desired: ComputeInstanceResource) -> list[str]:
        _ = ctx
        return parameters_errors(desired.address, desired.template_parameters)

    def build_spec(self, desired: ComputeInstanceResource) -> dict[str, Any]:
        return with_parameters(super().build_spec(desired), desired.template_parameters)

    def parameter_attributes(self, spec: dict[str, Any]) -> dict[str, Any]:
        return {"template_parameters": read_parameters(spec)}

    def status_attributes(self, obj: RemoteObject) -> dict[str, Any]:
        return {"ip_address": obj.status.get("ip_address") if obj.status else None}
