"""Field markers that tie resource models to fulfillment objects.

Markers ride on Pydantic fields through ``Annotated``:

- ``SpecParam`` names where the field lives in the object's ``spec``
- ``Compare`` picks how plan compares desired and recorded values
- ``ForceNew`` makes any change to the field a replacement
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, TypeAlias, TypeVar

from pydantic_core import PydanticUndefined

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo

M = TypeVar("M")
CompareStrategy: TypeAlias = Literal["partial", "exact", "set"]


@dataclass(frozen=True, slots=True)
class SpecParam:
    """Location of the field inside ``spec``, dot-separated.

    ``SpecParam("network.cidr")`` reads and writes ``spec["network"]["cidr"]``.
    """

    path: str

    @property
    def segments(self) -> list[str]:
        return self.path.split(".")

    def get(self, spec: dict[str, Any], default: Any = None) -> Any:
        node: Any = spec
        for key in self.segments:
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def put(self, spec: dict[str, Any], value: Any) -> None:
        *parents, leaf = self.segments
        node = spec
        for key in parents:
            node = node.setdefault(key, {})
        node[leaf] = value


@dataclass(frozen=True, slots=True)
class Compare:
    """Comparison used when planning.

    ``partial`` compares only the dict keys the config declares, ``exact``
    requires equality and ``set`` ignores list order.
    """

    strategy: CompareStrategy


@dataclass(frozen=True, slots=True)
class ForceNew:
    """The service cannot change this field on an existing object."""


def marked_fields(model: Any, marker_type: type[M]) -> Iterator[tuple[str, FieldInfo, M]]:
    """Yield ``(name, field_info, marker)`` for fields of *model* carrying *marker_type*.

    *model* may be a resource class or an instance.
    """
    cls = model if isinstance(model, type) else type(model)
    for name, fi in cls.model_fields.items():
        marker = next((m for m in fi.metadata if isinstance(m, marker_type)), None)
        if marker is not None:
            yield name, fi, marker


def _default_value(fi: FieldInfo) -> Any:
    if fi.default_factory is not None:
        return fi.default_factory()  # type: ignore[call-arg]
    return None if fi.default is PydanticUndefined else fi.default


def collect_compare_strategies(model: Any) -> dict[str, CompareStrategy]:
    return {name: m.strategy for name, _, m in marked_fields(model, Compare)}


def collect_force_new(model: Any) -> set[str]:
    return {name for name, _, _ in marked_fields(model, ForceNew)}


def build_spec(resource: Any) -> dict[str, Any]:
    """Spec dict for *resource*; fields left at ``None`` are omitted."""
    values = resource.model_dump(mode="json")
    spec: dict[str, Any] = {}
    for name, _, param in marked_fields(resource, SpecParam):
        if values.get(name) is not None:
            param.put(spec, values[name])
    return spec


def extract_spec_attrs(resource_cls: type, spec: dict[str, Any]) -> dict[str, Any]:
    """Read every ``SpecParam`` field back out of *spec*, using field defaults for gaps."""
    return {
        name: param.get(spec, _default_value(fi))
        for name, fi, param in marked_fields(resource_cls, SpecParam)
    }
