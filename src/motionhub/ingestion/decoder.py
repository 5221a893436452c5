"""Datagram decoding.

Telemetry senders use one of two grammars:

* a JSON object with optional ``acceleration`` and ``gyroscope`` groups,
  each carrying ``x``/``y``/``z``;
* a tagged tuple ``<tag>,<a>,<b>,<c>`` where the tag is ``rotation`` or
  starts with ``linear`` (case-insensitive), e.g. ``Linear Accel,0.1,0,9.8``.

The JSON grammar is attempted first; anything it does not recognize falls
through to the tuple grammar. Decoding never raises: rejections come back
as :class:`~motionhub.state.events.Rejected` values carrying a reason.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from motionhub._constants import RAW_FIELDS
from motionhub.exceptions import DecodeError, PatchError
from motionhub.ingestion.normalize import coerce_number, parse_tokens, safe_float
from motionhub.state.events import (
    DecodeResult,
    IngestionSource,
    PartialUpdate,
    Rejected,
    RejectReason,
)

_logger = logging.getLogger(__name__)

_TUPLE_ARITY = 4
_ROTATION_TAG = "rotation"
_LINEAR_TAG_PREFIX = "linear"


def _is_present(value: Any) -> bool:
    """Whether a group value counts as supplied (JSON ``null``/``false``/``0``/``""`` do not)."""
    if value is None or value is False or value == "":
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    if isinstance(value, (int, float)) and value == 0:
        return False
    return True


class _Vector(BaseModel):
    """Three-axis group; unconvertible axes read as zero."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _coerce_axes(cls, data: Any) -> dict[str, float]:
        source = data if isinstance(data, Mapping) else {}
        return {axis: coerce_number(source.get(axis)) for axis in ("x", "y", "z")}


class _StructuredPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    acceleration: _Vector | None = None
    gyroscope: _Vector | None = None

    @model_validator(mode="before")
    @classmethod
    def _drop_absent_groups(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        return {key: data[key] for key in ("acceleration", "gyroscope") if key in data and _is_present(data[key])}


def _decode_structured(text: str) -> PartialUpdate | None:
    try:
        obj = json.loads(text)
    except (ValueError, RecursionError):
        return None
    if not isinstance(obj, dict):
        return None
    try:
        envelope = _StructuredPayload.model_validate(obj)
    except ValidationError:
        return None
    if envelope.acceleration is None and envelope.gyroscope is None:
        return None

    fields: dict[str, float] = {}
    if envelope.acceleration is not None:
        fields.update(ax=envelope.acceleration.x, ay=envelope.acceleration.y, az=envelope.acceleration.z)
    if envelope.gyroscope is not None:
        fields.update(gx=envelope.gyroscope.x, gy=envelope.gyroscope.y, gz=envelope.gyroscope.z)
    return PartialUpdate(source=IngestionSource.UDP, **fields)


def _decode_tagged_tuple(text: str) -> DecodeResult:
    parts = [part.strip() for part in text.split(",")]
    if len(parts) != _TUPLE_ARITY:
        return Rejected(
            reason=RejectReason.UNEXPECTED_FORMAT,
            detail=f"expected {_TUPLE_ARITY} comma-separated tokens, got {len(parts)}",
            payload=text,
        )

    values = parse_tokens(parts[1:])
    if values is None:
        return Rejected(reason=RejectReason.NON_NUMERIC, detail="values must be finite numbers", payload=text)

    tag = parts[0].lower()
    a, b, c = values
    if tag == _ROTATION_TAG:
        return PartialUpdate.gyroscope(a, b, c)
    if tag.startswith(_LINEAR_TAG_PREFIX):
        return PartialUpdate.acceleration(a, b, c)
    return Rejected(reason=RejectReason.UNKNOWN_SENSOR, detail=f"sensor type {parts[0]!r}", payload=text)


def decode_datagram(payload: bytes | str) -> DecodeResult:
    """Decode one datagram payload into a partial update or a rejection."""
    text = payload.decode("utf-8", errors="replace") if isinstance(payload, bytes) else payload
    text = text.strip()

    structured = _decode_structured(text)
    if structured is not None:
        return structured
    return _decode_tagged_tuple(text)


def decode_datagram_strict(payload: bytes | str) -> PartialUpdate:
    """Like :func:`decode_datagram` but raises :class:`DecodeError` on rejection."""
    result = decode_datagram(payload)
    if isinstance(result, Rejected):
        raise DecodeError(f"{result.reason.value}: {result.detail}", reason=result.reason)
    return result


def build_push_update(raw_patch: Any, *, strict: bool = False) -> PartialUpdate:
    """Turn an externally pushed keyed patch into a partial update.

    Only the six raw sensor fields are accepted. Unknown keys (including
    derived ``hb``/``ra``/``mts`` and ``timestamp``, which are always
    recomputed) are dropped, or rejected when *strict* is set. Values must
    be finite numbers or numeric strings.
    """
    if not isinstance(raw_patch, Mapping):
        raise PatchError("patch must be a JSON object")

    fields: dict[str, float] = {}
    ignored: list[str] = []
    for key, value in raw_patch.items():
        if key not in RAW_FIELDS:
            if strict:
                raise PatchError(f"unknown field {key!r}", key=str(key))
            ignored.append(str(key))
            continue
        parsed = safe_float(value)
        if parsed is None:
            raise PatchError(f"field {key!r} must be a finite number, got {value!r}", key=key)
        fields[key] = parsed

    if ignored:
        _logger.warning("Ignoring non-sensor keys in pushed patch: %s", ", ".join(sorted(ignored)))
    return PartialUpdate(source=IngestionSource.HTTP, **fields)
