"""Authoritative snapshot store.

This is the only component allowed to merge partial updates into the
canonical snapshot. Datagram ingestion and HTTP pushes share one store.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from motionhub._constants import DEFAULT_PERSIST_TIMEOUT, RAW_FIELDS
from motionhub.exceptions import PersistenceError
from motionhub.models.snapshot import Snapshot
from motionhub.state.events import PartialUpdate
from motionhub.state.metrics import derive
from motionhub.state.persistence import SnapshotFile

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class SnapshotStore:
    """Owner of the single live :class:`Snapshot`.

    :meth:`merge` runs under an :class:`asyncio.Lock`, so concurrent
    callers observe merges one at a time in the order they acquired the
    lock. The lock is held across the durable write to keep the record on
    disk in merge order; the write itself runs in a worker thread and is
    bounded by ``persist_timeout``.

    A failed or timed-out write does not undo the in-memory merge. The
    store keeps serving the new value and reports ``is_durable = False``
    until a later write lands.
    """

    def __init__(
        self,
        snapshot_file: SnapshotFile | None = None,
        *,
        clock: Callable[[], int] = _now_ms,
        persist_timeout: float = DEFAULT_PERSIST_TIMEOUT,
    ) -> None:
        self._file = snapshot_file
        self._clock = clock
        self._persist_timeout = persist_timeout
        self._lock = asyncio.Lock()
        self._generation = 0
        self._durable = True
        self._current = self._restore()

    def _restore(self) -> Snapshot:
        if self._file is None:
            return Snapshot()
        try:
            loaded = self._file.load()
        except PersistenceError as exc:
            _logger.warning("Ignoring persisted snapshot, starting from defaults: %s", exc)
            return Snapshot()
        if loaded is None:
            return Snapshot()
        _logger.info("Restored snapshot from %s (timestamp=%s)", self._file.path, loaded.timestamp)
        return loaded

    @property
    def is_durable(self) -> bool:
        """Whether the persisted record matches the in-memory snapshot."""
        return self._durable

    def read(self) -> Snapshot:
        """Return the current snapshot.

        Snapshots are immutable, so the returned value is never affected by
        later merges.
        """
        return self._current

    async def merge(self, update: PartialUpdate) -> Snapshot:
        """Overlay *update* onto the held snapshot and return the result.

        Overlay order is zero defaults, then held raw values, then the
        update's fields; raw fields absent from the update keep their held
        value. Derived metrics and the timestamp are always recomputed.
        """
        async with self._lock:
            fields: dict[str, float] = dict.fromkeys(RAW_FIELDS, 0.0)
            fields.update(self._current.raw_fields())
            fields.update(update.fields)
            metrics = derive(fields["ax"], fields["ay"])
            snapshot = Snapshot(
                **fields,
                hb=metrics.hb,
                ra=metrics.ra,
                mts=metrics.mts,
                timestamp=self._clock(),
            )
            self._current = snapshot
            self._generation += 1
            await self._persist(snapshot, self._generation)

        _logger.debug("Merged %s update from %s: %s", update.kind.value, update.source.value, snapshot)
        return snapshot

    async def _persist(self, snapshot: Snapshot, generation: int) -> None:
        if self._file is None:
            return
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._file.write, snapshot, generation),
                timeout=self._persist_timeout,
            )
        except PersistenceError as exc:
            self._mark_lagging(str(exc))
        except TimeoutError:
            self._mark_lagging(f"write to {self._file.path} exceeded {self._persist_timeout:.1f}s")
        else:
            if not self._durable:
                _logger.info("Persisted snapshot caught up with memory at %s", self._file.path)
            self._durable = True

    def _mark_lagging(self, message: str) -> None:
        self._durable = False
        _logger.warning("Snapshot not persisted, durable copy now lags memory: %s", message)
