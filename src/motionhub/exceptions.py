"""Custom exception hierarchy for motionhub."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from motionhub.state.events import RejectReason


class MotionHubError(Exception):
    """Base exception for all motionhub errors."""


class MotionHubConfigError(MotionHubError):
    """Invalid or missing configuration."""


class DecodeError(MotionHubError):
    """A datagram payload could not be turned into a partial update.

    The datagram decoder reports rejections as values; this exception is
    raised by the strict helpers it is built from so callers that prefer
    exceptions can use them directly.
    """

    def __init__(self, message: str, *, reason: RejectReason) -> None:
        self.reason = reason
        super().__init__(message)


class PatchError(MotionHubError):
    """An externally pushed patch is malformed (not an object, non-numeric value)."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class PersistenceError(MotionHubError):
    """Reading or atomically replacing the persisted snapshot failed."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)
