"""Core infrastructure components for OSAC Provisioner."""

from osac_provisioner.core.client import FulfillmentAPIError, FulfillmentClient, NotFoundError
from osac_provisioner.core.provider import OSACProvider, TokenAuth
from osac_provisioner.core.service import RemoteObject, RemoteStatus, ResourceService
from osac_provisioner.core.state import ResourceInstance, State

__all__ = [
    "FulfillmentAPIError",
    "FulfillmentClient",
    "NotFoundError",
    "OSACProvider",
    "RemoteObject",
    "RemoteStatus",
    "ResourceInstance",
    "ResourceService",
    "State",
    "TokenAuth",
]
