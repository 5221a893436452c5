"""Query facade shared by the HTTP endpoint and embedding applications."""

from __future__ import annotations

import logging
from typing import Any

from motionhub.ingestion.decoder import build_push_update
from motionhub.models.snapshot import Snapshot
from motionhub.state.store import SnapshotStore

_logger = logging.getLogger(__name__)


class QueryFacade:
    """Read the snapshot, or push a patch through the regular merge path.

    The facade holds no state of its own; both operations go to the one
    :class:`SnapshotStore`, so pushed patches get the same metric
    recomputation and persistence as datagrams.
    """

    def __init__(self, store: SnapshotStore, *, strict: bool = False) -> None:
        self._store = store
        self._strict = strict

    @property
    def persisted(self) -> bool:
        return self._store.is_durable

    def get(self) -> Snapshot:
        return self._store.read()

    async def push(self, raw_patch: Any) -> Snapshot:
        """Merge a keyed numeric patch.

        Raises :class:`~motionhub.exceptions.PatchError` for malformed
        patches; the snapshot is left untouched in that case.
        """
        update = build_push_update(raw_patch, strict=self._strict)
        _logger.debug("Pushed patch fields=%s", sorted(update.fields))
        return await self._store.merge(update)
