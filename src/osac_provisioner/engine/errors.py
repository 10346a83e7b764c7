"""Engine error types."""

from __future__ import annotations

from typing import Any


class EngineError(Exception):
    """Base exception for engine errors."""


class UnknownResourceTypeError(EngineError):
    """Raised when a resource type has no registration/handler."""

    def __init__(self, resource_type: str) -> None:
        super().__init__(f"Unknown resource type: {resource_type}")
        self.resource_type = resource_type


class DuplicateAddressError(EngineError):
    """Raised when multiple desired resources share the same address."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Duplicate resource address: {address}")
        self.address = address


class StalePlanError(EngineError):
    """Raised when applying a plan against a different state than planned."""


class ValidationError(EngineError):
    """One or more resources failed plan validation."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        msg = "Validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        super().__init__(msg)


class RemoteCallFailed(EngineError):
    """A create/get/update/delete call against the fulfillment service failed.

    The transport error is kept on ``cause`` and chained via ``__cause__``.
    """

    def __init__(self, operation: str, resource_id: str, cause: BaseException) -> None:
        self.operation = operation
        self.resource_id = resource_id
        self.cause = cause
        target = f" {resource_id}" if resource_id else ""
        super().__init__(f"{operation}{target} failed: {cause}")


class WaitError(EngineError):
    """Base for errors raised while waiting for a resource to become ready.

    ``attributes`` is filled in by a reconciler whose create call was
    accepted before the wait failed, so the remote object can still be
    tracked.
    """

    attributes: dict[str, Any] | None = None

    def __init__(self, resource_id: str, message: str) -> None:
        self.resource_id = resource_id
        super().__init__(message)


class ResourceFailed(WaitError):
    """The fulfillment service reported a terminal failure state."""

    def __init__(self, resource_id: str, state: str) -> None:
        self.state = state
        super().__init__(resource_id, f"Resource {resource_id} reached failure state {state}")


class WaitTimeoutError(WaitError):
    """The deadline passed while the resource was still pending."""

    def __init__(self, resource_id: str, last_state: str, elapsed: float) -> None:
        self.last_state = last_state
        self.elapsed = elapsed
        super().__init__(
            resource_id,
            f"Timed out after {elapsed:.1f}s waiting for {resource_id or 'resource'} "
            f"(last state: {last_state or 'unknown'})",
        )


class UnexpectedStateError(WaitError):
    """The refresh reported a state that is neither pending nor a target."""

    def __init__(self, resource_id: str, state: str, expected: list[str]) -> None:
        self.state = state
        self.expected = expected
        super().__init__(
            resource_id,
            f"Unexpected state {state!r} for {resource_id or 'resource'}, "
            f"expected one of: {', '.join(expected)}",
        )


class WaitCanceled(WaitError):
    """The wait was canceled by the caller."""

    def __init__(self, resource_id: str) -> None:
        super().__init__(resource_id, f"Wait for {resource_id or 'resource'} canceled")


class ParameterCodecError(EngineError):
    """Base for template parameter envelope errors."""

    def __init__(self, parameter: str, message: str) -> None:
        self.parameter = parameter
        super().__init__(f"Template parameter {parameter!r}: {message}")


class EncodingError(ParameterCodecError):
    """A parameter value could not be wrapped into an envelope."""


class DecodingError(ParameterCodecError):
    """An envelope carried an unknown type tag or an unreadable payload."""


class ApplyError(EngineError):
    """Raised when an apply fails mid-way through.

    Carries the partial result (what was applied before the failure) so
    callers can inspect progress.  The original exception is chained via
    ``__cause__``.
    """

    def __init__(self, *, applied: list[Any], address: str, message: str) -> None:
        from osac_provisioner.engine.types import ApplyResult

        self.result = ApplyResult(applied=applied)
        self.address = address
        super().__init__(f"Apply failed on {address}: {message}")


class ApplyCanceled(EngineError):
    """Raised when an apply is canceled (Ctrl-C or a set cancel event).

    ``result`` holds the changes that finished before the cancel.
    """

    def __init__(
        self, message: str = "Apply canceled", *, applied: list[Any] | None = None
    ) -> None:
        from osac_provisioner.engine.types import ApplyResult

        self.result = ApplyResult(applied=applied or [])
        super().__init__(message)
