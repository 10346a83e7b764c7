"""Map exceptions to clean stderr messages and exit codes."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from osac_provisioner.core.client import FulfillmentAPIError
from osac_provisioner.engine.errors import (
    ApplyCanceled,
    ApplyError,
    RemoteCallFailed,
    ResourceFailed,
    StalePlanError,
    ValidationError,
    WaitError,
    WaitTimeoutError,
)

if TYPE_CHECKING:
    from osac_provisioner.engine.types import ApplyResult

_AUTH_STATUSES = frozenset({401, 403})


def _auth_hint(exc: BaseException | None) -> list[str]:
    cause = exc.cause if isinstance(exc, RemoteCallFailed) else exc
    if isinstance(cause, FulfillmentAPIError) and cause.status_code in _AUTH_STATUSES:
        return ["  Check the token (provider.token or OSAC_TOKEN)."]
    return []


def _wait_hint(exc: WaitError, address: str) -> list[str]:
    lines: list[str] = []
    if exc.attributes is not None:
        lines.append(f"  {address} was created but is not ready; it is marked tainted.")
    if isinstance(exc, ResourceFailed):
        lines.append("  The service reported a failed state; inspect the object before retrying.")
    elif isinstance(exc, WaitTimeoutError):
        lines.append("  Raise timeouts.create / timeouts.update if provisioning is just slow.")
    return lines


def _partial_result(result: ApplyResult) -> list[str]:
    s = result.summary()
    done = [
        f"{n} {verb}"
        for n, verb in (
            (s["create"], "added"),
            (s["replace"], "replaced"),
            (s["update"], "changed"),
            (s["delete"], "destroyed"),
        )
        if n
    ]
    return [f"  Partial result: {', '.join(done)}."] if done else []


def _apply_failure(exc: ApplyError) -> list[str]:
    lines = [f"Apply failed: {exc}", *_partial_result(exc.result)]
    cause = exc.__cause__
    if isinstance(cause, WaitError):
        lines.extend(_wait_hint(cause, exc.address))
    else:
        lines.extend(_auth_hint(cause))
    return lines


def _messages(exc: Exception) -> list[str]:
    from osac_provisioner.config.loader import ConfigError

    if isinstance(exc, ConfigError):
        return [f"Configuration error: {exc}"]
    if isinstance(exc, ValidationError):
        return ["Validation failed:", *(f"  - {e}" for e in exc.errors)]
    if isinstance(exc, StalePlanError):
        return [f"Plan is stale: {exc}"]
    if isinstance(exc, ApplyError):
        return _apply_failure(exc)
    if isinstance(exc, ApplyCanceled):
        return [
            "Apply canceled.",
            *_partial_result(exc.result),
            "  Operations that finished are recorded in the state file.",
        ]
    if isinstance(exc, RemoteCallFailed):
        return [f"Fulfillment API error: {exc}", *_auth_hint(exc)]
    return [f"Error: {exc}"]


def handle_error(exc: Exception, *, color: bool = True) -> int:
    """Print a clean error message to stderr and return an exit code.

    All errors map to exit code 1.  No tracebacks are printed.
    """
    fg = typer.colors.RED if color else None
    for line in _messages(exc):
        typer.echo(typer.style(line, fg=fg), err=True)
    return 1
