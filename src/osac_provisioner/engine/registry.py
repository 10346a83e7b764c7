"""Resource kinds known to the engine, keyed by ``resource_type``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from osac_provisioner.engine.errors import UnknownResourceTypeError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from osac_provisioner.engine.handlers import ResourceHandler
    from osac_provisioner.resources.base import Resource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceKind:
    model: type[Resource]
    handler: ResourceHandler[Any]

    @property
    def resource_type(self) -> str:
        return self.model.resource_type

    @property
    def priority(self) -> int:
        return self.model.plan_priority


class ResourceTypeRegistry:
    """Maps ``resource_type`` to the model and handler for that kind.

    Iteration yields kinds in apply order (ascending ``plan_priority``), so
    host pools come before the hosts and clusters that draw from them.
    """

    def __init__(self) -> None:
        self._kinds: dict[str, ResourceKind] = {}

    def register(self, model: type[Resource], handler: ResourceHandler[Any]) -> None:
        resource_type = getattr(model, "resource_type", None)
        if not isinstance(resource_type, str) or not resource_type:
            raise ValueError("Resource model must define a non-empty classvar `resource_type`")
        if resource_type in self._kinds:
            raise ValueError(f"Resource type already registered: {resource_type}")

        handled = getattr(handler, "model", None)
        if handled is not None and handled is not model:
            raise ValueError(
                f"{type(handler).__name__} handles {handled.__name__}, not {model.__name__}"
            )

        self._kinds[resource_type] = ResourceKind(model=model, handler=handler)
        logger.debug("Registered %s (priority %d)", resource_type, model.plan_priority)

    def get(self, resource_type: str) -> ResourceKind:
        try:
            return self._kinds[resource_type]
        except KeyError as e:
            raise UnknownResourceTypeError(resource_type) from e

    def priority(self, resource_type: str) -> int:
        return self.get(resource_type).priority

    def resource_types(self) -> list[str]:
        return sorted(self._kinds)

    def __contains__(self, resource_type: object) -> bool:
        return resource_type in self._kinds

    def __iter__(self) -> Iterator[ResourceKind]:
        return iter(sorted(self._kinds.values(), key=lambda k: (k.priority, k.resource_type)))

    def __len__(self) -> int:
        return len(self._kinds)
