"""motionhub - vehicle motion telemetry ingestion and safety metrics."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("motionhub")
except PackageNotFoundError:
    __version__ = "0+local"
from motionhub.config import MotionHubConfig
from motionhub.exceptions import (
    DecodeError,
    MotionHubConfigError,
    MotionHubError,
    PatchError,
    PersistenceError,
)
from motionhub.ingestion.decoder import build_push_update, decode_datagram
from motionhub.ingestion.udp import ListenerStatistics, UdpListener
from motionhub.models import (
    IngestionSource,
    PartialUpdate,
    PatchKind,
    Rejected,
    RejectReason,
    Snapshot,
)
from motionhub.query import QueryFacade
from motionhub.service import MotionHub
from motionhub.state.metrics import SafetyMetrics, derive
from motionhub.state.persistence import SnapshotFile
from motionhub.state.store import SnapshotStore

__all__ = [
    "__version__",
    "DecodeError",
    "IngestionSource",
    "ListenerStatistics",
    "MotionHub",
    "MotionHubConfig",
    "MotionHubConfigError",
    "MotionHubError",
    "PartialUpdate",
    "PatchError",
    "PatchKind",
    "PersistenceError",
    "QueryFacade",
    "RejectReason",
    "Rejected",
    "SafetyMetrics",
    "Snapshot",
    "SnapshotFile",
    "SnapshotStore",
    "UdpListener",
    "build_push_update",
    "decode_datagram",
    "derive",
]
