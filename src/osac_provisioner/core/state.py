"""Local state of provisioned OSAC objects.

The state file maps resource addresses to the fulfillment object each one
manages. Every write bumps ``serial``; saved plans record the serial and a
digest so they can be rejected once the state has moved on.
"""

import contextlib
import hashlib
import json
import logging
import os
import tempfile
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class StateVersionError(ValueError):
    """The state file was written by a newer, incompatible version."""


def _canonical_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)


def compute_attributes_hash(attrs: Mapping[str, Any]) -> str:
    """Compute a stable hash for a resource's stored attributes."""
    return hashlib.sha256(_canonical_json(attrs).encode("utf-8")).hexdigest()


def _now() -> datetime:
    return datetime.now(UTC)


class ResourceInstance(BaseModel):
    """One tracked fulfillment object.

    Attributes:
        address: Resource address (e.g., "osac_cluster.prod")
        resource_type: Type of the resource (e.g., "osac_cluster")
        name: Resource name (e.g., "prod")
        attributes: Declared and computed values; ``id`` holds the remote id
        attributes_hash: SHA256 of ``attributes``
        tainted: Created remotely but never observed ready
    """

    address: str
    resource_type: str
    name: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    attributes_hash: str = ""
    tainted: bool = False
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @property
    def resource_id(self) -> str:
        return str(self.attributes.get("id") or "")

    def touch(self, attrs: dict[str, Any], *, tainted: bool | None = None) -> bool:
        """Store *attrs*; return True when anything changed."""
        new_hash = compute_attributes_hash(attrs)
        changed = new_hash != self.attributes_hash or attrs != self.attributes
        if tainted is not None and tainted != self.tainted:
            self.tainted = tainted
            changed = True
        if changed:
            self.attributes = attrs
            self.attributes_hash = new_hash
            self.updated_at = _now()
        return changed


class State(BaseModel):
    """Terraform-style state file.

    Attributes:
        version: State file format version
        serial: Incremented on every write
        lineage: Identifies one state history across writes
        resources: Mapping of resource addresses to instances
    """

    version: int = STATE_VERSION
    serial: int = 0
    lineage: str = Field(default_factory=lambda: str(uuid.uuid4()))
    resources: dict[str, ResourceInstance] = Field(default_factory=dict)

    def record(
        self,
        address: str,
        resource_type: str,
        name: str,
        attrs: dict[str, Any],
        *,
        tainted: bool = False,
    ) -> ResourceInstance:
        """Track a freshly created object under *address*, replacing any entry."""
        inst = ResourceInstance(
            address=address,
            resource_type=resource_type,
            name=name,
            attributes=attrs,
            attributes_hash=compute_attributes_hash(attrs),
            tainted=tainted,
        )
        self.resources[address] = inst
        return inst

    def commit(self, path: Path) -> None:
        """Bump ``serial`` and save."""
        self.serial += 1
        self.save(path)

    def save(self, path: Path) -> None:
        """Write atomically (temp file + rename), keeping the previous file as ``.backup``."""
        path.parent.mkdir(parents=True, exist_ok=True)

        backup_path = Path(str(path) + ".backup")
        with contextlib.suppress(FileNotFoundError):
            backup_path.write_bytes(path.read_bytes())

        content = json.dumps(self.model_dump(mode="json"), indent=2, sort_keys=True) + "\n"

        fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
        tmp_file = Path(tmp_path)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            tmp_file.replace(path)
        finally:
            with contextlib.suppress(FileNotFoundError):
                tmp_file.unlink()
        logger.debug("State saved: serial=%d path=%s", self.serial, path)

    @classmethod
    def load(cls, path: Path) -> "State":
        """Load state from a JSON file.

        Raises:
            StateVersionError: If the file format is newer than ``STATE_VERSION``.
        """
        state = cls.model_validate_json(path.read_text(encoding="utf-8"))
        if state.version > STATE_VERSION:
            raise StateVersionError(
                f"{path}: state format v{state.version} is newer than supported "
                f"(v{STATE_VERSION}); upgrade osac-provisioner"
            )
        logger.debug("State loaded from %s", path)
        return state

    @classmethod
    def load_or_create(cls, path: Path) -> "State":
        if path.exists():
            return cls.load(path)
        logger.debug("No state at %s; starting empty", path)
        return cls()


def compute_state_digest(state: State) -> str:
    """Digest of everything a plan depends on; timestamps are left out."""
    resources = [
        {
            "address": address,
            "resource_type": inst.resource_type,
            "name": inst.name,
            "attributes_hash": inst.attributes_hash,
            "tainted": inst.tainted,
        }
        for address, inst in sorted(state.resources.items(), key=lambda kv: kv[0])
    ]
    digestable = {
        "version": state.version,
        "lineage": state.lineage,
        "serial": state.serial,
        "resources": resources,
    }
    return hashlib.sha256(_canonical_json(digestable).encode("utf-8")).hexdigest()
