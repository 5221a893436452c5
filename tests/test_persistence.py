from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from motionhub.exceptions import PersistenceError
from motionhub.models.snapshot import Snapshot
from motionhub.state.persistence import SnapshotFile


def _snapshot(**overrides: float) -> Snapshot:
    values = {"ax": 0.5, "ay": 2.0, "az": -1.0, "gx": 1.0, "gy": 2.0, "gz": 3.0, "hb": 0, "ra": 0}
    values.update(overrides)
    return Snapshot(mts=6.64, timestamp=1_770_928_447_000, **values)


def test_write_then_load_is_field_for_field_equal(tmp_path: Path) -> None:
    snapshot_file = SnapshotFile(tmp_path / "data.json")
    snapshot = _snapshot()

    assert snapshot_file.write(snapshot, generation=1) is True

    assert snapshot_file.load() == snapshot


def test_missing_record_loads_as_none(tmp_path: Path) -> None:
    assert SnapshotFile(tmp_path / "absent.json").load() is None


def test_partial_record_is_filled_with_defaults(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text(json.dumps({"ax": 1.25, "gx": 3}), encoding="utf-8")

    loaded = SnapshotFile(path).load()

    assert loaded is not None
    assert loaded.ax == 1.25
    assert loaded.gx == 3.0
    assert (loaded.ay, loaded.hb, loaded.ra, loaded.mts, loaded.timestamp) == (0.0, 0, 0, 0.0, 0)


@pytest.mark.parametrize("body", ["{broken", "[1, 2]", '{"ax": "fast"}', '{"hb": 7}'])
def test_invalid_record_raises(tmp_path: Path, body: str) -> None:
    path = tmp_path / "data.json"
    path.write_text(body, encoding="utf-8")

    with pytest.raises(PersistenceError) as exc_info:
        SnapshotFile(path).load()

    assert exc_info.value.path == path


def test_record_is_indented_json_with_full_field_set(tmp_path: Path) -> None:
    path = tmp_path / "public" / "data.json"
    SnapshotFile(path).write(Snapshot(), generation=1)

    text = path.read_text(encoding="utf-8")
    assert text.startswith("{\n  ")
    assert list(json.loads(text)) == ["ax", "ay", "az", "gx", "gy", "gz", "hb", "ra", "mts", "timestamp"]


def test_older_generation_does_not_replace_newer_record(tmp_path: Path) -> None:
    snapshot_file = SnapshotFile(tmp_path / "data.json")
    newer = _snapshot(ax=9.0)

    assert snapshot_file.write(newer, generation=2) is True
    assert snapshot_file.write(_snapshot(ax=1.0), generation=1) is False

    assert snapshot_file.load() == newer


def test_failed_replace_leaves_previous_record_and_no_temp_files(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = tmp_path / "data.json"
    snapshot_file = SnapshotFile(path)
    previous = _snapshot()
    snapshot_file.write(previous, generation=1)

    def _boom(_src: str, _dst: Path) -> None:
        raise OSError("read-only file system")

    monkeypatch.setattr("motionhub.state.persistence.os.replace", _boom)

    with pytest.raises(PersistenceError):
        snapshot_file.write(_snapshot(ax=4.0), generation=2)

    monkeypatch.undo()
    assert snapshot_file.load() == previous
    assert sorted(os.listdir(tmp_path)) == ["data.json"]


def test_unwritable_directory_raises(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(PersistenceError):
        SnapshotFile(blocker / "data.json").write(Snapshot(), generation=1)
