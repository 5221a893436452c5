"""The canonical motion snapshot."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from motionhub._constants import RAW_FIELDS


class Snapshot(BaseModel):
    """Latest sensor readings plus the safety metrics derived from them.

    Every field has a zero default so records created fresh, or loaded
    from a file written by an older producer, always carry the full set.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", allow_inf_nan=False)

    ax: float = 0.0
    ay: float = 0.0
    az: float = 0.0
    gx: float = 0.0
    gy: float = 0.0
    gz: float = 0.0
    hb: int = Field(default=0, ge=0, le=1, description="Hard-braking flag")
    ra: int = Field(default=0, ge=0, le=1, description="Rapid-acceleration flag")
    mts: float = Field(default=0.0, description="Maximum turnable speed estimate")
    timestamp: int = Field(default=0, description="Epoch milliseconds of the last accepted update")

    def raw_fields(self) -> dict[str, float]:
        """The six raw sensor values, in canonical order."""
        return {name: getattr(self, name) for name in RAW_FIELDS}
