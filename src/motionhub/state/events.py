"""Normalized ingestion events.

All ingestion paths (datagrams, HTTP pushes) convert their inputs into
these values. Only the state/store layer is allowed to merge them.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from motionhub._constants import ACCELERATION_FIELDS, GYROSCOPE_FIELDS, RAW_FIELDS


class IngestionSource(StrEnum):
    UDP = "udp"
    HTTP = "http"


class PatchKind(StrEnum):
    ACCELERATION = "acceleration"
    GYROSCOPE = "gyroscope"
    COMBINED = "combined"
    PARTIAL = "partial"


class RejectReason(StrEnum):
    NON_NUMERIC = "non_numeric_payload"
    UNKNOWN_SENSOR = "unrecognized_sensor_type"
    UNEXPECTED_FORMAT = "unexpected_payload_format"


class PartialUpdate(BaseModel):
    """A subset of the raw sensor fields to overlay onto the snapshot.

    Absent fields are ``None`` and leave the held value untouched.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    source: IngestionSource = IngestionSource.UDP
    ax: float | None = None
    ay: float | None = None
    az: float | None = None
    gx: float | None = None
    gy: float | None = None
    gz: float | None = None

    @classmethod
    def acceleration(
        cls, x: float, y: float, z: float, *, source: IngestionSource = IngestionSource.UDP
    ) -> PartialUpdate:
        return cls(source=source, ax=x, ay=y, az=z)

    @classmethod
    def gyroscope(
        cls, x: float, y: float, z: float, *, source: IngestionSource = IngestionSource.UDP
    ) -> PartialUpdate:
        return cls(source=source, gx=x, gy=y, gz=z)

    @property
    def fields(self) -> dict[str, float]:
        """The raw fields this update carries, in canonical order."""
        values = self.model_dump(include=set(RAW_FIELDS), exclude_none=True)
        return {name: values[name] for name in RAW_FIELDS if name in values}

    @property
    def kind(self) -> PatchKind:
        present = set(self.fields)
        has_accel = present.issuperset(ACCELERATION_FIELDS)
        has_gyro = present.issuperset(GYROSCOPE_FIELDS)
        if has_accel and has_gyro:
            return PatchKind.COMBINED
        if has_accel and present == set(ACCELERATION_FIELDS):
            return PatchKind.ACCELERATION
        if has_gyro and present == set(GYROSCOPE_FIELDS):
            return PatchKind.GYROSCOPE
        return PatchKind.PARTIAL


class Rejected(BaseModel):
    """Outcome of a payload the decoder could not turn into an update."""

    model_config = ConfigDict(frozen=True)

    reason: RejectReason
    detail: str = ""
    payload: str = Field(default="", description="Trimmed payload text (as received)")

    def as_log_args(self) -> tuple[Any, ...]:
        return (self.reason.value, self.detail, self.payload)


DecodeResult = PartialUpdate | Rejected
