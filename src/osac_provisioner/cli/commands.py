"""CLI command implementations."""

from __future__ import annotations

import contextlib
import json
import os
import signal
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Literal

import typer

from osac_provisioner.cli import app
from osac_provisioner.cli.errors import handle_error

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import FrameType

    from osac_provisioner.config.schema import Config
    from osac_provisioner.engine.types import ApplyResult, Plan

DEFAULT_CONFIG = Path("osac-provisioner.yaml")

ConfigPath = Annotated[
    Path,
    typer.Option("--config", "-c", help="Path to the configuration file."),
]

NoColor = Annotated[
    bool,
    typer.Option("--no-color", help="Disable colored output."),
]

AutoApprove = Annotated[
    bool,
    typer.Option("--auto-approve", help="Skip interactive approval."),
]

NoRefresh = Annotated[
    bool,
    typer.Option("--no-refresh", help="Skip refreshing state from the fulfillment service."),
]


def _use_color(no_color: bool) -> bool:
    return not (no_color or os.environ.get("NO_COLOR"))


@contextlib.contextmanager
def _exit_on_error(color: bool) -> Iterator[None]:
    """Report any exception raised in the block and exit with its code."""
    try:
        yield
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc


def _approve(question: str, *, auto_approve: bool, declined: str) -> None:
    if auto_approve:
        return
    try:
        typer.confirm(question, abort=True)
    except typer.Abort as e:
        typer.echo(declined, err=True)
        raise typer.Exit(1) from e


def _echo_changes(text: str, summary: str) -> None:
    typer.echo(text)
    typer.echo()
    typer.echo(summary)


@contextlib.contextmanager
def _cancel_on_signal() -> Iterator[threading.Event]:
    """Turn the first SIGINT/SIGTERM into a cancel request.

    A second signal falls through to the previous handler (usually
    ``KeyboardInterrupt``). Handlers can only be installed from the main
    thread; elsewhere the event is returned without them.
    """
    cancel = threading.Event()
    if threading.current_thread() is not threading.main_thread():
        yield cancel
        return

    previous = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}

    def _on_signal(signum: int, frame: FrameType | None) -> None:
        if cancel.is_set():
            handler = previous[signal.Signals(signum)]
            if callable(handler):
                handler(signum, frame)
                return
            raise KeyboardInterrupt
        typer.echo("\nCanceling; waiting for the current request to finish...", err=True)
        cancel.set()

    for sig in previous:
        signal.signal(sig, _on_signal)
    try:
        yield cancel
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def _apply_with_progress(plan_obj: Plan, cfg: Config, *, color: bool) -> ApplyResult:
    """Apply a plan with a Rich progress bar and per-resource status lines."""
    from rich.console import Console
    from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

    from osac_provisioner.cli.formatting import _ACTION_STYLES
    from osac_provisioner.config import apply
    from osac_provisioner.engine.types import ResourceChange

    console = Console(no_color=not color)
    actionable = plan_obj.actionable()

    with _cancel_on_signal() as cancel, Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Applying", total=len(actionable))

        def on_progress(change: ResourceChange, event: Literal["start", "done"]) -> None:
            s = _ACTION_STYLES[change.action.value]
            if event == "start":
                progress.update(task, description=f"{change.address}: {s.progress_verb}...")
            elif event == "done":
                progress.console.print(f"  {change.address}: {s.done_verb}")
                progress.advance(task)

        return apply(plan_obj, cfg, progress=on_progress, cancel=cancel)


def _confirm_and_apply(
    plan_obj: Plan,
    cfg: Config,
    *,
    color: bool,
    auto_approve: bool,
    question: str,
    nothing_to_do: str,
) -> None:
    """Show *plan_obj*, ask for approval, apply it and print the totals."""
    from osac_provisioner.cli.formatting import (
        format_apply_summary,
        format_plan,
        format_plan_summary,
        has_actionable_changes,
    )

    if not has_actionable_changes(plan_obj):
        typer.echo(nothing_to_do)
        raise typer.Exit(0)

    _echo_changes(
        format_plan(plan_obj, color=color),
        format_plan_summary(plan_obj.summary(), color=color),
    )
    typer.echo()
    _approve(question, auto_approve=auto_approve, declined="Apply canceled.")

    with _exit_on_error(color):
        result = _apply_with_progress(plan_obj, cfg, color=color)

    typer.echo()
    typer.echo(format_apply_summary(result.summary(), color=color))


@app.command()
def plan(
    config: ConfigPath = DEFAULT_CONFIG,
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Write the plan to FILE for a later apply."),
    ] = None,
    no_color: NoColor = False,
    no_refresh: NoRefresh = False,
) -> None:
    """Show what apply would change. Exits 2 when there are changes."""
    from osac_provisioner import config as api
    from osac_provisioner.cli.formatting import (
        format_plan,
        format_plan_summary,
        has_actionable_changes,
    )

    color = _use_color(no_color)
    with _exit_on_error(color):
        plan_obj = api.plan(api.load(config), refresh=not no_refresh)

    _echo_changes(
        format_plan(plan_obj, color=color),
        format_plan_summary(plan_obj.summary(), color=color),
    )
    if out is not None:
        plan_obj.save(out)
        typer.echo(f"\nPlan saved to {out}")

    if has_actionable_changes(plan_obj):
        raise typer.Exit(2)


@app.command(name="apply")
def apply_cmd(
    plan_file: Annotated[
        Path | None,
        typer.Argument(help="Plan written by 'plan --out'; planned afresh when omitted."),
    ] = None,
    config: ConfigPath = DEFAULT_CONFIG,
    auto_approve: AutoApprove = False,
    no_color: NoColor = False,
    no_refresh: NoRefresh = False,
) -> None:
    """Create, update and delete objects to match the configuration."""
    from osac_provisioner import config as api
    from osac_provisioner.engine.types import Plan

    color = _use_color(no_color)
    with _exit_on_error(color):
        cfg = api.load(config)
        if plan_file is None:
            plan_obj = api.plan(cfg, refresh=not no_refresh)
        else:
            plan_obj = Plan.load(plan_file)

    _confirm_and_apply(
        plan_obj,
        cfg,
        color=color,
        auto_approve=auto_approve,
        question="Do you want to apply these changes?",
        nothing_to_do="No changes. Resources are up-to-date.",
    )


@app.command()
def destroy(
    config: ConfigPath = DEFAULT_CONFIG,
    auto_approve: AutoApprove = False,
    no_color: NoColor = False,
) -> None:
    """Delete every object tracked in the state file."""
    from osac_provisioner import config as api

    color = _use_color(no_color)
    with _exit_on_error(color):
        cfg = api.load(config)
        plan_obj = api.plan(cfg, destroy=True)

    _confirm_and_apply(
        plan_obj,
        cfg,
        color=color,
        auto_approve=auto_approve,
        question="Do you really want to destroy all resources?",
        nothing_to_do="No resources to destroy.",
    )


@app.command(name="refresh")
def refresh_cmd(
    config: ConfigPath = DEFAULT_CONFIG,
    auto_approve: AutoApprove = False,
    no_color: NoColor = False,
) -> None:
    """Re-read tracked objects and write what changed to the state file."""
    from osac_provisioner import config as api
    from osac_provisioner.cli.formatting import (
        changes_summary,
        format_changes,
        format_plan_summary,
    )

    color = _use_color(no_color)
    with _exit_on_error(color):
        cfg = api.load(config)
        changes, state = api.refresh(cfg)

    if not changes:
        typer.echo("No changes. State is up-to-date with the fulfillment service.")
        raise typer.Exit(0)

    _echo_changes(
        format_changes(changes, color=color),
        format_plan_summary(changes_summary(changes), color=color, header="Refresh"),
    )
    typer.echo()
    _approve(
        "Do you want to update the state file?",
        auto_approve=auto_approve,
        declined="Refresh canceled.",
    )

    with _exit_on_error(color):
        api.save_state(cfg, state)
    count = len(state.resources)
    typer.echo(f"State refreshed. {count} resource{'s' if count != 1 else ''} tracked.")


@app.command()
def drift(
    config: ConfigPath = DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Report objects that changed remotely since the last apply or refresh."""
    from osac_provisioner import config as api
    from osac_provisioner.cli.formatting import format_changes

    color = _use_color(no_color)
    with _exit_on_error(color):
        changes = api.drift(api.load(config))

    if not changes:
        typer.echo("No drift detected. State is up-to-date with the fulfillment service.")
        raise typer.Exit(0)

    typer.echo("Drift detected:\n")
    typer.echo(format_changes(changes, color=color))


@app.command()
def validate(
    config: ConfigPath = DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Check the configuration without contacting the fulfillment service."""
    from osac_provisioner import config as api
    from osac_provisioner.cli.formatting import styler

    color = _use_color(no_color)
    with _exit_on_error(color):
        api.plan(api.load(config), refresh=False)

    typer.echo(styler(color)("Configuration is valid.", fg="green"))


@app.command()
def get(
    kind: Annotated[
        str,
        typer.Argument(help="Object kind, e.g. cluster, host_class, cluster_template."),
    ],
    object_id: Annotated[str, typer.Argument(metavar="ID", help="Object id.")],
    config: ConfigPath = DEFAULT_CONFIG,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON.")] = False,
    no_color: NoColor = False,
) -> None:
    """Look up one object in the fulfillment service."""
    from osac_provisioner import config as api
    from osac_provisioner.cli.formatting import format_attributes

    color = _use_color(no_color)
    with _exit_on_error(color):
        attrs = api.read_data_source(api.load(config), kind, object_id)

    if as_json:
        typer.echo(json.dumps(attrs, indent=2, sort_keys=True))
    else:
        typer.echo(format_attributes(attrs))
