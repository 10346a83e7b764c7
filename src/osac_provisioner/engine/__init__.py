"""Plan and apply engine for OSAC resources."""

from osac_provisioner.engine.engine import OSACEngine
from osac_provisioner.engine.errors import (
    ApplyCanceled,
    ApplyError,
    DecodingError,
    DuplicateAddressError,
    EncodingError,
    EngineError,
    ParameterCodecError,
    RemoteCallFailed,
    ResourceFailed,
    StalePlanError,
    UnexpectedStateError,
    UnknownResourceTypeError,
    ValidationError,
    WaitCanceled,
    WaitError,
    WaitTimeoutError,
)
from osac_provisioner.engine.handlers import EngineContext, ResourceHandler
from osac_provisioner.engine.registry import ResourceKind, ResourceTypeRegistry
from osac_provisioner.engine.types import Action, ApplyResult, Plan, PlanMetadata, ResourceChange
from osac_provisioner.engine.waiter import WaitOptions, wait_for_ready

__all__ = [
    "Action",
    "ApplyCanceled",
    "ApplyError",
    "ApplyResult",
    "DecodingError",
    "DuplicateAddressError",
    "EncodingError",
    "EngineContext",
    "EngineError",
    "OSACEngine",
    "ParameterCodecError",
    "Plan",
    "PlanMetadata",
    "RemoteCallFailed",
    "ResourceChange",
    "ResourceFailed",
    "ResourceHandler",
    "ResourceKind",
    "ResourceTypeRegistry",
    "StalePlanError",
    "UnexpectedStateError",
    "UnknownResourceTypeError",
    "ValidationError",
    "WaitCanceled",
    "WaitError",
    "WaitOptions",
    "WaitTimeoutError",
    "wait_for_ready",
]
