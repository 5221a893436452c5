"""Service wiring: one store, the datagram listener and the query endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from aiohttp import web

from motionhub.config import MotionHubConfig
from motionhub.exceptions import MotionHubError
from motionhub.ingestion.udp import UdpListener
from motionhub.query import QueryFacade
from motionhub.server import build_app
from motionhub.state.persistence import SnapshotFile
from motionhub.state.store import SnapshotStore

_logger = logging.getLogger(__name__)


class MotionHub:
    """Run the full ingestion pipeline.

    Usage::

        async with MotionHub(MotionHubConfig.from_env()) as hub:
            await hub.wait_closed()
    """

    def __init__(self, config: MotionHubConfig, *, store: SnapshotStore | None = None) -> None:
        self._config = config
        if store is None:
            snapshot_file = SnapshotFile(config.data_file) if config.data_file is not None else None
            store = SnapshotStore(snapshot_file, persist_timeout=config.persist_timeout)
        self._store = store
        self._facade = QueryFacade(store, strict=config.strict_push)
        self._listener = UdpListener(store, host=config.udp_host, port=config.udp_port)
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None
        self._stopped: asyncio.Event | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MotionHub:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        self._stopped = asyncio.Event()
        await self._listener.start()
        if self._config.http_enabled:
            app = build_app(self._facade, stats_provider=lambda: self._listener.statistics)
            runner = web.AppRunner(app, access_log=None)
            await runner.setup()
            site = web.TCPSite(runner, self._config.http_host, self._config.http_port)
            try:
                await site.start()
            except OSError:
                await runner.cleanup()
                await self._listener.close()
                raise
            self._runner = runner
            self._site = site
            _logger.info("Query endpoint listening on %s:%s", *self.http_address)

    async def stop(self) -> None:
        """Stop accepting input, finish in-flight merges, release sockets."""
        await self._listener.close()
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
        if self._stopped is not None:
            self._stopped.set()

    async def wait_closed(self) -> None:
        if self._stopped is None:
            raise MotionHubError("Service not started. Use 'async with MotionHub(...) as hub:'")
        await self._stopped.wait()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def store(self) -> SnapshotStore:
        return self._store

    @property
    def facade(self) -> QueryFacade:
        return self._facade

    @property
    def listener(self) -> UdpListener:
        return self._listener

    @property
    def udp_address(self) -> tuple[str, int]:
        return self._listener.address

    @property
    def http_address(self) -> tuple[str, int]:
        if self._runner is None:
            raise MotionHubError("Query endpoint is not running")
        for address in self._runner.addresses:
            if isinstance(address, tuple):
                return address[0], address[1]
        raise MotionHubError("Query endpoint has no bound TCP address")
