"""Durable snapshot record.

The record is a single JSON object holding the full snapshot field set.
Writes go to a temporary file in the same directory which is then
atomically renamed over the record, so readers see either the previous
record or the new one, never a partial write.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path

from pydantic import ValidationError

from motionhub.exceptions import PersistenceError
from motionhub.models.snapshot import Snapshot

_logger = logging.getLogger(__name__)


class SnapshotFile:
    """Atomic JSON file holding one :class:`Snapshot`.

    Writes are blocking and meant to run in a worker thread. Each write
    carries a generation number; a write older than the last one that
    landed is skipped, so an abandoned slow write cannot replace a newer
    record after the fact.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._written_generation = -1

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Snapshot | None:
        """Read the record.

        Returns ``None`` when the file does not exist. Raises
        :class:`PersistenceError` when it exists but cannot be read or does
        not hold a valid snapshot object.
        """
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(f"Cannot read {self._path}: {exc}", path=self._path) from exc

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"{self._path} is not JSON: {exc}", path=self._path) from exc
        if not isinstance(raw, dict):
            raise PersistenceError(f"{self._path} does not hold a JSON object", path=self._path)

        try:
            return Snapshot.model_validate(raw)
        except ValidationError as exc:
            raise PersistenceError(f"{self._path} holds an invalid snapshot: {exc}", path=self._path) from exc

    def write(self, snapshot: Snapshot, generation: int = 0) -> bool:
        """Atomically replace the record with *snapshot*.

        Returns ``False`` when the write was skipped because a newer
        generation already landed. Raises :class:`PersistenceError` on I/O
        failure, leaving the previous record intact.
        """
        body = json.dumps(snapshot.model_dump(mode="json"), indent=2)
        with self._lock:
            if generation <= self._written_generation:
                _logger.debug(
                    "Skipping stale snapshot write generation=%s last=%s", generation, self._written_generation
                )
                return False
            self._replace(body)
            self._written_generation = generation
        return True

    def _replace(self, body: str) -> None:
        directory = self._path.parent
        tmp_name: str | None = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(body)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as exc:
            raise PersistenceError(f"Cannot write {self._path}: {exc}", path=self._path) from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    _logger.debug("Could not remove temporary file %s", tmp_name, exc_info=True)
