"""CLI application for osac-provisioner."""

from __future__ import annotations

import logging
import os
import sys

import typer

from osac_provisioner import __version__

app = typer.Typer(
    name="osac-provisioner",
    no_args_is_help=True,
    add_completion=False,
)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_DATEFMT = "%H:%M:%S"
_VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"osac-provisioner {__version__}")
        raise typer.Exit


def _requested_level(verbose: int) -> int | None:
    """``OSAC_LOG`` wins over ``-v`` flags; ``None`` means leave logging alone."""
    env_level = os.environ.get("OSAC_LOG", "").upper()
    if env_level:
        if env_level not in _VALID_LEVELS:
            print(
                f"WARNING: invalid OSAC_LOG level '{env_level}', "
                f"expected one of {', '.join(sorted(_VALID_LEVELS))}; defaulting to INFO",
                file=sys.stderr,
            )
            return logging.INFO
        return logging.getLevelName(env_level)
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return None


def _configure_logging(verbose: int) -> None:
    """Route package logs to stderr at the requested level.

    The root logger stays at WARNING so third-party libraries stay quiet.
    At DEBUG, httpx request lines are shown too, one per API call.
    """
    level = _requested_level(verbose)
    if level is None:
        return
    logging.basicConfig(
        level=logging.WARNING,
        format=_LOG_FORMAT,
        datefmt=_LOG_DATEFMT,
        stream=sys.stderr,
        force=True,
    )
    logging.getLogger("osac_provisioner").setLevel(level)
    if level <= logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.INFO)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase log verbosity (-v info, -vv debug with API requests).",
    ),
) -> None:
    """Declarative provisioning of OSAC clusters, compute instances and hosts."""
    _ = version
    _configure_logging(verbose)


# Register commands after app is created to avoid circular imports.
from osac_provisioner.cli import commands as _commands  # noqa: E402, F401
