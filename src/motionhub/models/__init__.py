"""Data models shared across motionhub."""

from motionhub.models.snapshot import Snapshot
from motionhub.state.events import (
    DecodeResult,
    IngestionSource,
    PartialUpdate,
    PatchKind,
    Rejected,
    RejectReason,
)

__all__ = [
    "DecodeResult",
    "IngestionSource",
    "PartialUpdate",
    "PatchKind",
    "RejectReason",
    "Rejected",
    "Snapshot",
]
