"""Template parameter envelopes.

Template parameters are declared as plain strings but travel to the
fulfillment service as ``google.protobuf.Any`` envelopes: a type tag plus the
serialized payload. The set of value kinds understood here is closed; each
entry of ``_WRAPPERS`` pairs a ``ParameterKind`` with the protobuf wrapper
message used for its payload. Supporting a new kind means adding an enum
member and a row to that table.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from google.protobuf import any_pb2, json_format, wrappers_pb2
from google.protobuf.message import DecodeError, Message

from osac_provisioner.engine.errors import DecodingError, EncodingError

_TYPE_URL_PREFIX = "type.googleapis.com/"


class ParameterKind(str, Enum):
    STRING = "google.protobuf.StringValue"

    @property
    def type_url(self) -> str:
        return _TYPE_URL_PREFIX + self.value


_WRAPPERS: dict[ParameterKind, type[Message]] = {
    ParameterKind.STRING: wrappers_pb2.StringValue,
}


def _kind_of(envelope: any_pb2.Any) -> ParameterKind | None:
    try:
        return ParameterKind(envelope.TypeName())
    except ValueError:
        return None


def encode_parameter(name: str, value: str) -> any_pb2.Any:
    """Wrap a single string value into an envelope."""
    wrapper = _WRAPPERS[ParameterKind.STRING]
    envelope = any_pb2.Any()
    try:
        envelope.Pack(wrapper(value=value))
    except (TypeError, ValueError) as exc:
        raise EncodingError(name, f"cannot wrap {type(value).__name__} value: {exc}") from exc
    return envelope


def decode_parameter(name: str, envelope: any_pb2.Any) -> str:
    """Unwrap a single envelope back to its string value."""
    kind = _kind_of(envelope)
    if kind is None:
        raise DecodingError(name, f"unsupported type {envelope.type_url or '<empty>'}")

    payload = _WRAPPERS[kind]()
    try:
        unpacked = envelope.Unpack(payload)
    except DecodeError as exc:
        raise DecodingError(name, f"malformed {kind.value} payload: {exc}") from exc
    if not unpacked:
        raise DecodingError(name, f"payload is not a {kind.value}")
    return payload.value


def encode_parameters(params: Mapping[str, str] | None) -> dict[str, any_pb2.Any]:
    """Encode a name → string mapping. ``None`` means no parameters."""
    if not params:
        return {}
    return {name: encode_parameter(name, value) for name, value in params.items()}


def decode_parameters(envelopes: Mapping[str, any_pb2.Any] | None) -> dict[str, str]:
    """Decode a name → envelope mapping. ``None`` means no parameters."""
    if not envelopes:
        return {}
    return {name: decode_parameter(name, env) for name, env in envelopes.items()}


def envelope_to_json(envelope: any_pb2.Any) -> dict[str, Any]:
    """Render an envelope in the protobuf JSON mapping (``{"@type": ..., "value": ...}``)."""
    return json_format.MessageToDict(envelope)


def envelope_from_json(name: str, data: Mapping[str, Any]) -> any_pb2.Any:
    """Parse an envelope from its protobuf JSON mapping."""
    envelope = any_pb2.Any()
    try:
        json_format.ParseDict(dict(data), envelope)
    except (json_format.ParseError, TypeError, ValueError, KeyError) as exc:
        raise DecodingError(name, f"malformed envelope: {exc}") from exc
    return envelope


def parameters_to_json(params: Mapping[str, str] | None) -> dict[str, dict[str, Any]]:
    """Encode string parameters straight to their JSON envelope form."""
    return {name: envelope_to_json(env) for name, env in encode_parameters(params).items()}


def parameters_from_json(data: Mapping[str, Mapping[str, Any]] | None) -> dict[str, str]:
    """Decode JSON envelopes (as returned by the REST API) to string parameters."""
    if not data:
        return {}
    return decode_parameters({name: envelope_from_json(name, raw) for name, raw in data.items()})
