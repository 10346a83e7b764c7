"""Default resource type registry factory."""

from __future__ import annotations

from osac_provisioner.engine.cluster_handler import ClusterHandler
from osac_provisioner.engine.compute_instance_handler import ComputeInstanceHandler
from osac_provisioner.engine.host_handler import HostHandler
from osac_provisioner.engine.host_pool_handler import HostPoolHandler
from osac_provisioner.engine.registry import ResourceTypeRegistry
from osac_provisioner.resources.cluster import ClusterResource
from osac_provisioner.resources.compute_instance import ComputeInstanceResource
from osac_provisioner.resources.host import HostResource
from osac_provisioner.resources.host_pool import HostPoolResource


def default_registry() -> ResourceTypeRegistry:
    """Create a fresh registry with all built-in resource types and handlers."""
    registry = ResourceTypeRegistry()
    registry.register(HostPoolResource, HostPoolHandler())
    registry.register(HostResource, HostHandler())
    registry.register(ClusterResource, ClusterHandler())
    registry.register(ComputeInstanceResource, ComputeInstanceHandler())
    return registry
