"""Host handler.

Power changes are reported synchronously by the fulfillment service, so
host operations do not poll.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from osac_provisioner.engine.classifier import HOST_STATES
from osac_provisioner.engine.fulfillment_handler import FulfillmentHandler
from osac_provisioner.resources.host import HostResource, parse_power_state, short_power_state

if TYPE_CHECKING:
    from osac_provisioner.core.service import RemoteObject


class HostHandler(FulfillmentHandler[HostResource]):
    collection = "hosts"
    table = HOST_STATES
    model = HostResource
    awaits_ready = False

    def build_spec(self, desired: HostResource) -> dict[str, Any]:
        if desired.power_state is None:
            return {}
        return {"power_state": parse_power_state(desired.power_state)}

    def spec_attributes(self, spec: dict[str, Any]) -> dict[str, Any]:
        return {"power_state": short_power_state(spec.get("power_state"))}

    def status_attributes(self, obj: RemoteObject) -> dict[str, Any]:
        current = obj.status.get("power_state") if obj.status else None
        return {"current_power_state": short_power_state(current)}
