"""OSAC resource definitions."""

from osac_provisioner.resources.base import HostSet, Resource
from osac_provisioner.resources.cluster import ClusterResource
from osac_provisioner.resources.compute_instance import ComputeInstanceResource
from osac_provisioner.resources.host import HostResource
from osac_provisioner.resources.host_pool import HostPoolResource

__all__ = [
    "ClusterResource",
    "ComputeInstanceResource",
    "HostPoolResource",
    "HostResource",
    "HostSet",
    "Resource",
]
