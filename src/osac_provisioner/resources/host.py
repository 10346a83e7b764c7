"""Host resource model."""

from __future__ import annotations

from typing import ClassVar, Literal

from osac_provisioner.resources.base import Resource

POWER_STATES: dict[str, str] = {
    "ON": "HOST_POWER_STATE_ON",
    "OFF": "HOST_POWER_STATE_OFF",
}
POWER_STATE_UNSPECIFIED = "HOST_POWER_STATE_UNSPECIFIED"


def parse_power_state(value: str | None) -> str:
    """Map ``ON``/``OFF`` (or their full enum names) to the remote enum value."""
    if value is None:
        return POWER_STATE_UNSPECIFIED
    upper = value.upper()
    if upper in POWER_STATES:
        return POWER_STATES[upper]
    if upper in POWER_STATES.values():
        return upper
    return POWER_STATE_UNSPECIFIED


def short_power_state(value: str | None) -> str | None:
    """Inverse of ``parse_power_state``; unspecified maps to ``None``."""
    for short, full in POWER_STATES.items():
        if value in (short, full):
            return short
    return None


class HostResource(Resource):
    """A bare-metal host whose desired power state is managed."""

    resource_type: ClassVar[str] = "osac_host"
    namespace: ClassVar[str] = "host"
    plan_priority: ClassVar[int] = 20

    power_state: Literal["ON", "OFF"] | None = None
