"""Cluster handler."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from osac_provisioner.engine.classifier import CLUSTER_STATES
from osac_provisioner.engine.fulfillment_handler import FulfillmentHandler
from osac_provisioner.engine.templated import parameters_errors, read_parameters, with_parameters
from osac_provisioner.resources.cluster import ClusterResource

if TYPE_CHECKING:
    from osac_provisioner.core.service import RemoteObject
    from osac_provisioner.engine.handlers import EngineContext


class ClusterHandler(FulfillmentHandler[ClusterResource]):
    """Provisions clusters and waits for ``CLUSTER_STATE_READY``."""

    collection = "clusters"
    table = CLUSTER_STATES
    model = ClusterResource

    def validate(self, ctx: EngineContext, desired: ClusterResource) -> list[str]:
        _ = ctx
        return parameters_errors(desired.address, desired.template_parameters)

    def build_spec(self, desired: ClusterResource) -> dict[str, Any]:
        return with_parameters(super().build_spec(desired), desired.template_parameters)

    def parameter_attributes(self, spec: dict[str, Any]) -> dict[str, Any]:
        return {"template_parameters": read_parameters(spec)}

    def status_attributes(self, obj: RemoteObject) -> dict[str, Any]:
        status = obj.status
        return {
            "api_url": status.get("api_url") if status else None,
            "console_url": status.get("console_url") if status else None,
        }
