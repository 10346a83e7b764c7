"""Wait for a remote object to reach a ready state.

``wait_for_ready`` is a small state machine: it calls a refresh function,
looks at the reported label and either finishes (target reached), fails
(unexpected label, refresh error, timeout, cancellation) or sleeps and polls
again. Refresh errors are never retried here.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Collection
from dataclasses import dataclass
from typing import Any, TypeAlias

from osac_provisioner.engine.errors import UnexpectedStateError, WaitCanceled, WaitTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_CREATE_TIMEOUT = 30 * 60.0
DEFAULT_UPDATE_TIMEOUT = 30 * 60.0
DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_MIN_POLL_INTERVAL = 5.0

# How often an in-flight refresh checks the cancel event.
CANCEL_CHECK_INTERVAL = 0.05

RefreshFunc: TypeAlias = Callable[[], tuple[Any, str]]


@dataclass(frozen=True)
class WaitOptions:
    """Timeouts and poll intervals, in seconds."""

    create_timeout: float = DEFAULT_CREATE_TIMEOUT
    update_timeout: float = DEFAULT_UPDATE_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    min_poll_interval: float = DEFAULT_MIN_POLL_INTERVAL


def _sleep(delay: float, cancel: threading.Event | None) -> bool:
    """Sleep for *delay* seconds. Return True if *cancel* fired meanwhile."""
    if cancel is None:
        time.sleep(delay)
        return False
    return cancel.wait(delay)




def _call_refresh(
    refresh: RefreshFunc, cancel: threading.Event | None, resource_id: str
) -> tuple[Any, str]:
    """Call *refresh*, giving up on it as soon as *cancel* is set.

    With a cancel event the call runs on a daemon thread. An abandoned call
    finishes (or times out in the client) in the background and its result
    is dropped.
    """
    if cancel is None:
        return refresh()

    done = threading.Event()
    result: list[tuple[Any, str]] = []
    error: list[BaseException] = []

    def _run() -> None:
        try:
            result.append(refresh())
        except BaseException as e:  # noqa: BLE001 - re-raised on the waiting thread
            error.append(e)
        finally:
            done.set()

    name = f"refresh-{resource_id or 'resource'}"
    threading.Thread(target=_run, name=name, daemon=True).start()
    while not done.wait(CANCEL_CHECK_INTERVAL):
        if cancel.is_set() and not done.is_set():
            logger.debug("Abandoning in-flight refresh of %s", resource_id or "resource")
            raise WaitCanceled(resource_id)
    if error:
        raise error[0]
    return result[0]


def wait_for_ready(
    refresh: RefreshFunc,
    *,
    pending: Collection[str],
    target: Collection[str],
    timeout: float | None = None,
    poll_interval: float | None = None,
    min_poll_interval: float | None = None,
    cancel: threading.Event | None = None,
    resource_id: str = "",
) -> Any:
    """Poll *refresh* until it reports a label in *target*.

    The first sleep after the initial refresh lasts *min_poll_interval*,
    later ones *poll_interval*; no sleep extends past the deadline. Falsy
    durations fall back to the module defaults. Setting *cancel* interrupts
    both sleeps and in-flight refreshes.

    Returns:
        The object returned by the refresh that reached a target label.

    Raises:
        UnexpectedStateError: A label outside *pending* and *target* was seen.
        WaitTimeoutError: *timeout* elapsed while the label was still pending.
        WaitCanceled: *cancel* was set, or the wait was interrupted (Ctrl-C).
        Exception: Whatever *refresh* raised, unchanged.
    """
    timeout = timeout or DEFAULT_CREATE_TIMEOUT
    poll_interval = poll_interval or DEFAULT_POLL_INTERVAL
    min_poll_interval = min_poll_interval or DEFAULT_MIN_POLL_INTERVAL
    pending_set = frozenset(pending)
    target_set = frozenset(target)
    label = resource_id or "resource"

    start = time.monotonic()
    deadline = start + timeout
    delay = min_poll_interval
    polls = 0

    try:
        while True:
            if cancel is not None and cancel.is_set():
                raise WaitCanceled(resource_id)

            obj, state = _call_refresh(refresh, cancel, resource_id)
            polls += 1
            logger.debug("Poll %d for %s: state=%s", polls, label, state)

            if state in target_set:
                logger.info(
                    "%s reached %s after %d poll(s) in %.1fs",
                    label,
                    state,
                    polls,
                    time.monotonic() - start,
                )
                return obj

            if state not in pending_set:
                raise UnexpectedStateError(resource_id, state, sorted(pending_set | target_set))

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise WaitTimeoutError(resource_id, state, time.monotonic() - start)

            if _sleep(min(delay, remaining), cancel):
                raise WaitCanceled(resource_id)
            delay = poll_interval
    except KeyboardInterrupt as e:
        raise WaitCanceled(resource_id) from e
