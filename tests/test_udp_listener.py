from __future__ import annotations

import asyncio
import socket
from collections.abc import Callable

import pytest

from motionhub.ingestion.udp import UdpListener
from motionhub.models.snapshot import Snapshot
from motionhub.state.events import PartialUpdate, RejectReason
from motionhub.state.store import SnapshotStore


def _send(address: tuple[str, int], *payloads: bytes) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        for payload in payloads:
            sock.sendto(payload, address)


async def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


class _BrokenStore(SnapshotStore):
    async def merge(self, update: PartialUpdate) -> Snapshot:
        raise RuntimeError("store unavailable")


@pytest.mark.asyncio
async def test_rotation_datagram_is_merged() -> None:
    store = SnapshotStore()
    async with UdpListener(store, host="127.0.0.1", port=0) as listener:
        _send(listener.address, b"rotation,1.0,2.0,3.0")
        await _wait_for(lambda: listener.statistics.received == 1)
        await listener.drain()

    snapshot = store.read()
    assert (snapshot.gx, snapshot.gy, snapshot.gz) == (1.0, 2.0, 3.0)
    assert (snapshot.ax, snapshot.ay, snapshot.az) == (0.0, 0.0, 0.0)
    assert listener.statistics.accepted == 1


@pytest.mark.asyncio
async def test_structured_datagram_keeps_gyroscope() -> None:
    store = SnapshotStore()
    async with UdpListener(store, host="127.0.0.1", port=0) as listener:
        _send(listener.address, b"rotation,4,5,6")
        await _wait_for(lambda: listener.statistics.received == 1)
        await listener.drain()
        _send(listener.address, b'{"acceleration": {"x": 2, "y": 0.5, "z": 9.8}}')
        await _wait_for(lambda: listener.statistics.received == 2)
        await listener.drain()

    snapshot = store.read()
    assert snapshot.raw_fields() == {"ax": 2.0, "ay": 0.5, "az": 9.8, "gx": 4.0, "gy": 5.0, "gz": 6.0}
    assert (snapshot.hb, snapshot.ra) == (1, 1)


@pytest.mark.asyncio
async def test_rejected_datagrams_leave_snapshot_unchanged(caplog: pytest.LogCaptureFixture) -> None:
    store = SnapshotStore()
    async with UdpListener(store, host="127.0.0.1", port=0) as listener:
        with caplog.at_level("WARNING", logger="motionhub.ingestion.udp"):
            _send(listener.address, b"foo,1,2,3", b"rotation,a,2,3", b"rotation,1,2", b"")
            await _wait_for(lambda: listener.statistics.received == 4)
            await listener.drain()

    assert store.read() == Snapshot()
    stats = listener.statistics
    assert stats.accepted == 0
    assert stats.rejected == {
        RejectReason.UNKNOWN_SENSOR: 1,
        RejectReason.NON_NUMERIC: 1,
        RejectReason.UNEXPECTED_FORMAT: 2,
    }
    assert "unrecognized_sensor_type" in caplog.text


@pytest.mark.asyncio
async def test_listener_survives_bad_datagram_and_merge_failure() -> None:
    store = _BrokenStore()
    async with UdpListener(store, host="127.0.0.1", port=0) as listener:
        _send(listener.address, b"\xff\xfe", b"linear,1,2,3", b"linear,4,5,6")
        await _wait_for(lambda: listener.statistics.received == 3)
        await listener.drain()
        assert listener.is_running

    stats = listener.statistics
    assert stats.merge_failures == 2
    assert stats.accepted == 0
    assert stats.as_dict()["rejected"]["unexpected_payload_format"] == 1


@pytest.mark.asyncio
async def test_updates_apply_in_receipt_order() -> None:
    store = SnapshotStore()
    payloads = [f"linear,{i},0,0".encode() for i in range(1, 11)]
    async with UdpListener(store, host="127.0.0.1", port=0) as listener:
        _send(listener.address, *payloads)
        await _wait_for(lambda: listener.statistics.received == len(payloads))
        await listener.drain()

    assert store.read().ax == 10.0
    assert listener.statistics.accepted == len(payloads)


@pytest.mark.asyncio
async def test_close_stops_listener() -> None:
    listener = UdpListener(SnapshotStore(), host="127.0.0.1", port=0)
    await listener.start()
    assert listener.is_running

    await listener.close()

    assert not listener.is_running
