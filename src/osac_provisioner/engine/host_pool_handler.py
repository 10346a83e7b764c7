"""Host pool handler."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from osac_provisioner.engine.classifier import HOST_POOL_STATES
from osac_provisioner.engine.fulfillment_handler import FulfillmentHandler
from osac_provisioner.resources.host_pool import HostPoolResource

if TYPE_CHECKING:
    from osac_provisioner.core.service import RemoteObject


class HostPoolHandler(FulfillmentHandler[HostPoolResource]):
    """Provisions host pools and waits until their hosts are assigned."""

    collection = "host_pools"
    table = HOST_POOL_STATES
    model = HostPoolResource

    def status_attributes(self, obj: RemoteObject) -> dict[str, Any]:
        hosts = obj.status.get("hosts") if obj.status else None
        return {"hosts": list(hosts or [])}
