"""Terraform-style rendering of plans, drift and lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NamedTuple

import typer

from osac_provisioner.engine.types import Action, count_actions

if TYPE_CHECKING:
    from collections.abc import Callable

    from osac_provisioner.engine.types import Plan, ResourceChange


class _ActionStyle(NamedTuple):
    color: str
    symbol: str
    description: str
    progress_verb: str
    done_verb: str


_ACTION_STYLES: dict[str, _ActionStyle] = {
    "create": _ActionStyle("green", "+", "will be created", "Creating", "Creation complete"),
    "update": _ActionStyle(
        "yellow", "~", "will be updated in-place", "Updating", "Update complete"
    ),
    "replace": _ActionStyle(
        "magenta", "-/+", "must be replaced", "Replacing", "Replacement complete"
    ),
    "delete": _ActionStyle("red", "-", "will be destroyed", "Destroying", "Destroy complete"),
    "no-op": _ActionStyle("bright_black", " ", "is up-to-date", "", ""),
}

_FORCES = " # forces replacement"


def styler(color: bool) -> Callable[..., str]:
    """Return ``typer.style`` when *color* is True, otherwise a passthrough."""
    if color:
        return typer.style
    return lambda text, **_kw: text


def has_actionable_changes(plan: Plan) -> bool:
    return bool(plan.actionable())


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return f'"{value}"'
    if value is None:
        return "null"
    return str(value)


def _flatten(value: Any, prefix: str) -> dict[str, Any]:
    """Expand nested mappings into dotted keys (``node_sets.workers.size``)."""
    if not isinstance(value, dict) or not value:
        return {prefix: value}
    flat: dict[str, Any] = {}
    for k, v in value.items():
        flat.update(_flatten(v, f"{prefix}.{k}"))
    return flat


def _diff_lines(field: str, before: Any, after: Any) -> dict[str, str]:
    """``key -> "old -> new"`` for each leaf of *field* that differs."""
    if not (isinstance(before, dict) and isinstance(after, dict)):
        return {field: f"{_format_value(before)} -> {_format_value(after)}"}
    old, new = _flatten(before, field), _flatten(after, field)
    return {
        k: f"{_format_value(old.get(k))} -> {_format_value(new.get(k))}"
        for k in sorted(set(old) | set(new))
        if old.get(k) != new.get(k)
    }


def _change_attrs(change: ResourceChange) -> dict[str, str]:
    if change.action == Action.CREATE and change.planned:
        return {
            k: _format_value(v)
            for field, value in change.planned.items()
            for k, v in _flatten(value, field).items()
        }
    if change.action not in (Action.UPDATE, Action.REPLACE) or not change.diff:
        return {}

    attrs: dict[str, str] = {}
    for field, d in change.diff.items():
        lines = _diff_lines(field, d["from"], d["to"])
        if field in change.replace_fields:
            lines = {k: v + _FORCES for k, v in lines.items()}
        attrs.update(lines)
    return attrs


def _align_values(items: dict[str, str]) -> list[tuple[str, str]]:
    """Right-pad keys so ``=`` signs align."""
    if not items:
        return []
    width = max(len(k) for k in items)
    return [(k.ljust(width), v) for k, v in items.items()]


def format_change(change: ResourceChange, *, color: bool = True) -> str:
    """Render a single ResourceChange as a Terraform-style block."""
    style = styler(color)
    s = _ACTION_STYLES[change.action.value]
    fg = {"fg": s.color}

    name = change.address.split(".", 1)[1] if "." in change.address else change.address
    header = f"  # {change.address} {s.description}"
    if change.tainted:
        header += " (tainted)"
    lines = [
        style(header, bold=True, **fg),
        style(f'  {s.symbol} resource "{change.resource_type}" "{name}" {{', **fg),
        *[
            style(f"      {s.symbol} {k} = {v}", **fg)
            for k, v in _align_values(_change_attrs(change))
        ],
        style("    }", **fg),
    ]
    return "\n".join(lines)


def format_changes(changes: list[ResourceChange], *, color: bool = True) -> str:
    blocks = [format_change(c, color=color) for c in changes if c.action != Action.NOOP]
    if not blocks:
        return "No changes. Resources are up-to-date."
    return "\n\n".join(blocks)


def format_plan(plan: Plan, *, color: bool = True) -> str:
    return format_changes(plan.changes, color=color)


def format_attributes(attrs: dict[str, Any]) -> str:
    """Render a lookup result as aligned ``key = value`` lines."""
    items = {k: _format_value(v) for k, v in attrs.items()}
    return "\n".join(f"{k} = {v}" for k, v in _align_values(items))


_PLAN_VERBS = ("to add", "to change", "to destroy")
_APPLY_VERBS = ("added", "changed", "destroyed")
_SUMMARY_COLORS = ("green", "yellow", "red")


def _format_summary(summary: dict[str, int], verbs: tuple[str, ...], *, color: bool) -> str:
    """Build ``N verb, N verb, N verb``; a replacement is one add plus one destroy."""
    style = styler(color)
    replaced = summary.get("replace", 0)
    counts = (
        summary.get("create", 0) + replaced,
        summary.get("update", 0),
        summary.get("delete", 0) + replaced,
    )
    parts = [
        style(f"{n} {verb}", fg=fg) if n and color else f"{n} {verb}"
        for n, verb, fg in zip(counts, verbs, _SUMMARY_COLORS, strict=True)
    ]
    return ", ".join(parts)


def changes_summary(changes: list[ResourceChange]) -> dict[str, int]:
    return count_actions(changes)


def format_plan_summary(
    summary: dict[str, int], *, color: bool = True, header: str = "Plan"
) -> str:
    """Render ``Plan: 2 to add, 1 to change, 0 to destroy.``"""
    return f"{header}: {_format_summary(summary, _PLAN_VERBS, color=color)}."


def format_apply_summary(summary: dict[str, int], *, color: bool = True) -> str:
    """Render ``Apply complete! Resources: 2 added, 0 changed, 0 destroyed.``"""
    style = styler(color)
    head = style("Apply complete!", fg="green", bold=True)
    return f"{head} Resources: {_format_summary(summary, _APPLY_VERBS, color=color)}."
