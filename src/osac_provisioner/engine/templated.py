"""Helpers shared by kinds built from a template with typed parameters."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from osac_provisioner.engine.codec import (
    decode_parameter,
    encode_parameters,
    envelope_from_json,
    parameters_to_json,
)
from osac_provisioner.engine.errors import DecodingError, ParameterCodecError

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)


def parameters_errors(address: str, params: Mapping[str, str]) -> list[str]:
    """Validation messages for parameters that cannot be wrapped."""
    try:
        encode_parameters(params)
    except ParameterCodecError as e:
        return [f"{address}: {e}"]
    return []


def with_parameters(spec: dict[str, Any], params: Mapping[str, str]) -> dict[str, Any]:
    if params:
        spec["template_parameters"] = parameters_to_json(params)
    return spec


def read_parameters(spec: Mapping[str, Any]) -> dict[str, str]:
    """Decode the parameters of a remote spec.

    Objects may carry parameters set by other clients with envelope types
    this tool does not manage. Those are skipped with a warning instead of
    failing the read.
    """
    params: dict[str, str] = {}
    for name, raw in (spec.get("template_parameters") or {}).items():
        try:
            params[name] = decode_parameter(name, envelope_from_json(name, raw))
        except DecodingError as e:
            logger.warning("Skipping template parameter: %s", e)
    return params
