"""Read-only lookups of fulfillment objects by id."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from osac_provisioner.core.client import FulfillmentAPIError
from osac_provisioner.engine.cluster_handler import ClusterHandler
from osac_provisioner.engine.compute_instance_handler import ComputeInstanceHandler
from osac_provisioner.engine.errors import EngineError, RemoteCallFailed
from osac_provisioner.engine.host_handler import HostHandler
from osac_provisioner.engine.host_pool_handler import HostPoolHandler

if TYPE_CHECKING:
    from osac_provisioner.core.provider import OSACProvider
    from osac_provisioner.core.service import RemoteObject
    from osac_provisioner.engine.fulfillment_handler import FulfillmentHandler

logger = logging.getLogger(__name__)


class UnknownDataSourceError(EngineError):
    def __init__(self, kind: str) -> None:
        super().__init__(f"Unknown data source: {kind} (expected one of: {', '.join(KINDS)})")
        self.kind = kind


@dataclass(frozen=True)
class DataSource:
    """How to look up and flatten one kind of object.

    Managed kinds reuse their handler's attribute mapping and keep only
    ``fields``; catalog kinds (templates, host classes) are read as-is.
    """

    collection: str
    fields: tuple[str, ...]
    handler: FulfillmentHandler[Any] | None = None

    def attributes(self, obj: RemoteObject) -> dict[str, Any]:
        if self.handler is not None:
            attrs = self.handler.to_attributes(obj, obj.name or "", parameters=False)
            return {k: attrs.get(k) for k in self.fields}

        raw = obj.model_dump()
        return {k: raw.get(k, obj.spec.get(k)) for k in self.fields}


_CATALOG_FIELDS = ("id", "title", "description")

DATA_SOURCES: dict[str, DataSource] = {
    "cluster": DataSource(
        "clusters",
        ("id", "name", "template", "state", "api_url", "console_url"),
        ClusterHandler(),
    ),
    "cluster_template": DataSource("cluster_templates", _CATALOG_FIELDS),
    "compute_instance": DataSource(
        "compute_instances",
        ("id", "name", "template", "state", "ip_address"),
        ComputeInstanceHandler(),
    ),
    "compute_instance_template": DataSource("compute_instance_templates", _CATALOG_FIELDS),
    "host": DataSource(
        "hosts",
        ("id", "name", "power_state", "state", "current_power_state"),
        HostHandler(),
    ),
    "host_class": DataSource("host_classes", _CATALOG_FIELDS),
    "host_pool": DataSource("host_pools", ("id", "name", "state", "hosts"), HostPoolHandler()),
}
KINDS = tuple(sorted(DATA_SOURCES))


def read_data_source(provider: OSACProvider, kind: str, object_id: str) -> dict[str, Any]:
    """Fetch one object of *kind* and return its attributes.

    Raises:
        UnknownDataSourceError: If *kind* is not a known data source.
        RemoteCallFailed: If the lookup fails (including 404).
    """
    try:
        source = DATA_SOURCES[kind]
    except KeyError as e:
        raise UnknownDataSourceError(kind) from e

    collection = getattr(provider.client, source.collection)
    try:
        obj = collection.get(object_id)
    except FulfillmentAPIError as e:
        raise RemoteCallFailed("get", object_id, e) from e
    logger.debug("Read %s %s", kind, object_id)
    return source.attributes(obj)
