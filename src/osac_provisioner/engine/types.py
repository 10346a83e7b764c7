"""Plan, change and apply-result models.

A plan is a list of per-address changes plus the metadata needed to reject
it later if the state file moved on. Plans round-trip through JSON so they
can be saved by ``plan --out`` and applied from a separate process.
"""

from __future__ import annotations

import json
from collections import Counter
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from collections.abc import Iterable


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"
    NOOP = "no-op"


def count_actions(changes: Iterable[ResourceChange]) -> dict[str, int]:
    """Count *changes* per action value; every action is present, no-ops included."""
    counts = Counter(c.action.value for c in changes)
    return {a.value: counts.get(a.value, 0) for a in Action}


class PlanMetadata(BaseModel):
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    destroy: bool
    refresh: bool
    state_lineage: str
    state_serial: int
    state_digest: str
    config_digest: str
    engine_version: str


class ResourceChange(BaseModel):
    """One planned action on one address.

    ``replace_fields`` lists the diff keys that cannot be changed in place.
    ``tainted`` marks an object whose create was accepted but never reached
    a ready state; it is updated even when its attributes match.
    """

    address: str
    resource_type: str
    action: Action
    desired: dict[str, Any] | None = None
    prior: dict[str, Any] | None = None
    planned: dict[str, Any] | None = None
    diff: dict[str, Any] | None = None
    replace_fields: list[str] = Field(default_factory=list)
    tainted: bool = False


class Plan(BaseModel):
    metadata: PlanMetadata
    changes: list[ResourceChange]

    def actionable(self) -> list[ResourceChange]:
        """Non-NOOP changes in execution order: everything else, then deletes."""
        pending = [c for c in self.changes if c.action != Action.NOOP]
        return [c for c in pending if c.action != Action.DELETE] + [
            c for c in pending if c.action == Action.DELETE
        ]

    def summary(self) -> dict[str, int]:
        return count_actions(self.changes)

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(mode="json")
        path.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")

    @classmethod
    def load(cls, path: Path) -> Plan:
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))


class ApplyResult(BaseModel):
    applied: list[ResourceChange] = Field(default_factory=list)

    def summary(self) -> dict[str, int]:
        return count_actions(self.applied)
