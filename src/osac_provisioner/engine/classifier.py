"""Per-kind classification of reported status states.

Each resource kind gets one immutable ``StateTable`` describing which status
labels mean "still working", "ready" and "failed". The poll engine only ever
sees label sets taken from these tables, so it stays kind-agnostic.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from osac_provisioner.engine.errors import ResourceFailed

if TYPE_CHECKING:
    from osac_provisioner.core.service import RemoteObject
    from osac_provisioner.engine.waiter import RefreshFunc

logger = logging.getLogger(__name__)


class Bucket(str, Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class Classification:
    bucket: Bucket
    state: str
    object: RemoteObject


@dataclass(frozen=True)
class StateTable:
    """Pending/target/failure labels for one resource kind.

    ``unobserved`` is the pending label reported while the object has no
    status yet.
    """

    kind: str
    unobserved: str
    pending: frozenset[str]
    target: frozenset[str]
    failure: str

    def __post_init__(self) -> None:
        if self.unobserved not in self.pending:
            raise ValueError(f"{self.kind}: unobserved state must be pending")
        if self.pending & self.target or self.failure in self.pending | self.target:
            raise ValueError(f"{self.kind}: pending, target and failure states must be disjoint")

    @classmethod
    def for_prefix(cls, kind: str, prefix: str) -> StateTable:
        """Build the standard UNSPECIFIED/PROGRESSING/READY/FAILED table."""
        return cls(
            kind=kind,
            unobserved=f"{prefix}_UNSPECIFIED",
            pending=frozenset({f"{prefix}_UNSPECIFIED", f"{prefix}_PROGRESSING"}),
            target=frozenset({f"{prefix}_READY"}),
            failure=f"{prefix}_FAILED",
        )

    @property
    def states(self) -> frozenset[str]:
        """Every enumerated state of this kind."""
        return self.pending | self.target | {self.failure}

    def bucket_of(self, state: str) -> Bucket:
        if state == self.failure:
            return Bucket.FAILED
        if state in self.target:
            return Bucket.READY
        return Bucket.PENDING

    def classify(self, obj: RemoteObject) -> Classification:
        """Classify a remote object.

        Raises:
            ResourceFailed: If the object reports the failure state.
        """
        if obj.status is None:
            return Classification(Bucket.PENDING, self.unobserved, obj)

        state = obj.status.state or self.unobserved
        bucket = self.bucket_of(state)
        if bucket is Bucket.FAILED:
            raise ResourceFailed(obj.id, state)
        return Classification(bucket, state, obj)


CLUSTER_STATES = StateTable.for_prefix("cluster", "CLUSTER_STATE")
COMPUTE_INSTANCE_STATES = StateTable.for_prefix("compute_instance", "COMPUTE_INSTANCE_STATE")
HOST_STATES = StateTable.for_prefix("host", "HOST_STATE")
HOST_POOL_STATES = StateTable.for_prefix("host_pool", "HOST_POOL_STATE")


def refresh_func(
    table: StateTable,
    fetch: Callable[[str], RemoteObject],
    resource_id: str,
) -> RefreshFunc:
    """Bind *fetch* and *resource_id* into a refresh callable for ``wait_for_ready``.

    The returned callable reports the label of each observation as-is, so a
    label missing from the table (e.g. a deletion in progress) ends the wait
    with ``UnexpectedStateError``.
    """

    def _refresh() -> tuple[RemoteObject, str]:
        obj = fetch(resource_id)
        result = table.classify(obj)
        if result.state not in table.states:
            logger.warning(
                "%s %s reported unrecognized state %s",
                table.kind,
                resource_id,
                result.state,
            )
        return result.object, result.state

    return _refresh
