"""Telemetry datagram listener.

The listener binds one UDP socket and feeds every datagram through the
decoder into the shared :class:`~motionhub.state.store.SnapshotStore`.

Delivery is at most once. Senders receive no acknowledgment and no error
for rejected payloads, and datagrams lost in transit are not recovered;
callers must not assume that a sent reading reached the snapshot.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from collections import Counter
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any

from motionhub._constants import DEFAULT_UDP_HOST, DEFAULT_UDP_PORT
from motionhub.exceptions import MotionHubError
from motionhub.ingestion.decoder import decode_datagram
from motionhub.state.events import PartialUpdate, Rejected, RejectReason
from motionhub.state.store import SnapshotStore

__all__ = ["ListenerStatistics", "UdpListener"]

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListenerStatistics:
    """Counters for datagrams seen by a :class:`UdpListener`."""

    received: int = 0
    accepted: int = 0
    rejected: dict[RejectReason, int] = field(default_factory=dict)
    merge_failures: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "received": self.received,
            "accepted": self.accepted,
            "rejected": {reason.value: self.rejected.get(reason, 0) for reason in RejectReason},
            "merge_failures": self.merge_failures,
        }


class _ListenerProtocol(asyncio.DatagramProtocol):
    def __init__(self, listener: UdpListener) -> None:
        self._listener = listener

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._listener._connection_made(transport)

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        self._listener._on_datagram(data, addr)

    def error_received(self, exc: Exception) -> None:
        self._listener._on_error(exc)

    def connection_lost(self, exc: Exception | None) -> None:
        self._listener._connection_lost(exc)


class UdpListener:
    """Receive loop for telemetry datagrams.

    Each accepted datagram is merged in its own task so a slow durable
    write never stalls the socket; the store's lock applies the merges
    one at a time in receipt order.

    Usage::

        async with UdpListener(store, port=41234) as listener:
            ...
    """

    def __init__(
        self,
        store: SnapshotStore,
        host: str = DEFAULT_UDP_HOST,
        port: int = DEFAULT_UDP_PORT,
    ) -> None:
        self._store = store
        self._host = host
        self._port = port
        self._loop: asyncio.AbstractEventLoop | None = None
        self._transport: asyncio.DatagramTransport | None = None
        self._pending: set[asyncio.Task[None]] = set()
        self._received = 0
        self._accepted = 0
        self._rejected: Counter[RejectReason] = Counter()
        self._merge_failures = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self._transport is not None:
            return
        self._loop = asyncio.get_running_loop()
        transport, _ = await self._loop.create_datagram_endpoint(
            lambda: _ListenerProtocol(self),
            local_addr=(self._host, self._port),
            family=socket.AF_INET,
        )
        self._transport = transport

    async def close(self) -> None:
        """Stop receiving and wait for merges already scheduled."""
        transport = self._transport
        self._transport = None
        if transport is not None:
            transport.close()
        await self.drain()

    async def drain(self) -> None:
        """Wait until every scheduled merge has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def __aenter__(self) -> UdpListener:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def is_running(self) -> bool:
        return self._transport is not None

    @property
    def address(self) -> tuple[str, int]:
        if self._transport is None:
            raise MotionHubError("Listener not started. Use 'async with UdpListener(...) as listener:'")
        sockname = self._transport.get_extra_info("sockname")
        return sockname[0], sockname[1]

    @property
    def statistics(self) -> ListenerStatistics:
        return ListenerStatistics(
            received=self._received,
            accepted=self._accepted,
            rejected=dict(self._rejected),
            merge_failures=self._merge_failures,
        )

    # ------------------------------------------------------------------
    # Protocol callbacks
    # ------------------------------------------------------------------

    def _connection_made(self, transport: asyncio.BaseTransport) -> None:
        sockname = transport.get_extra_info("sockname")
        _logger.info("UDP listener bound on %s:%s", sockname[0], sockname[1])

    def _connection_lost(self, exc: Exception | None) -> None:
        if exc is not None:
            _logger.warning("UDP listener socket closed with error: %s", exc)
        else:
            _logger.debug("UDP listener socket closed")

    def _on_error(self, exc: Exception) -> None:
        _logger.warning("UDP socket error (listener keeps running): %s", exc)

    def _on_datagram(self, data: bytes, addr: tuple[str, int]) -> None:
        self._received += 1
        try:
            _logger.debug(
                "Datagram from %s:%s -> %s",
                addr[0],
                addr[1],
                data.decode("utf-8", errors="replace").strip(),
            )
            result = decode_datagram(data)
            if isinstance(result, Rejected):
                self._rejected[result.reason] += 1
                _logger.warning(
                    "Dropping datagram from %s:%s: %s (%s) payload=%r",
                    addr[0],
                    addr[1],
                    *result.as_log_args(),
                )
                return
            self._schedule_merge(result)
        except Exception:
            _logger.warning("Unhandled failure processing datagram from %s:%s", addr[0], addr[1], exc_info=True)

    def _schedule_merge(self, update: PartialUpdate) -> None:
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._merge(update))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _merge(self, update: PartialUpdate) -> None:
        try:
            await self._store.merge(update)
        except Exception:
            self._merge_failures += 1
            _logger.exception("Failed to merge %s update", update.kind.value)
        else:
            self._accepted += 1
