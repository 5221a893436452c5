"""aiohttp application exposing the query facade.

Routes:

* ``GET /api/sensor-data`` - current snapshot as a flat JSON object.
* ``POST /api/sensor-data`` - merge a JSON patch, answer
  ``{"success": true, "data": <snapshot>, "persisted": <bool>}``.
* ``GET /data.json`` - same body as the ``GET`` above, for dashboards that
  poll the persisted record path directly.
* ``GET /api/stats`` - listener counters, when a provider is wired in.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from aiohttp import web

from motionhub._constants import API_ROUTE, LEGACY_DATA_ROUTE, STATS_ROUTE
from motionhub.exceptions import PatchError
from motionhub.ingestion.udp import ListenerStatistics
from motionhub.query import QueryFacade

_logger = logging.getLogger(__name__)

FACADE_KEY = web.AppKey("facade", QueryFacade)
STATS_PROVIDER_KEY: web.AppKey[Callable[[], ListenerStatistics]] = web.AppKey("stats_provider")


def _invalid(detail: str) -> web.Response:
    return web.json_response({"error": "Invalid data", "detail": detail}, status=400)


async def _get_snapshot(request: web.Request) -> web.Response:
    facade = request.app[FACADE_KEY]
    return web.json_response(facade.get().model_dump(mode="json"))


async def _post_patch(request: web.Request) -> web.Response:
    facade = request.app[FACADE_KEY]
    try:
        body: Any = await request.json()
    except ValueError as exc:
        _logger.warning("Rejected push from %s: body is not JSON (%s)", request.remote, exc)
        return _invalid("request body is not valid JSON")

    try:
        snapshot = await facade.push(body)
    except PatchError as exc:
        _logger.warning("Rejected push from %s: %s", request.remote, exc)
        return _invalid(str(exc))

    return web.json_response(
        {
            "success": True,
            "data": snapshot.model_dump(mode="json"),
            "persisted": facade.persisted,
        }
    )


async def _get_stats(request: web.Request) -> web.Response:
    provider = request.app[STATS_PROVIDER_KEY]
    return web.json_response(provider().as_dict())


def build_app(
    facade: QueryFacade,
    *,
    stats_provider: Callable[[], ListenerStatistics] | None = None,
) -> web.Application:
    """Create the web application serving *facade*."""
    app = web.Application()
    app[FACADE_KEY] = facade
    app.router.add_get(API_ROUTE, _get_snapshot)
    app.router.add_post(API_ROUTE, _post_patch)
    app.router.add_get(LEGACY_DATA_ROUTE, _get_snapshot)
    if stats_provider is not None:
        app[STATS_PROVIDER_KEY] = stats_provider
        app.router.add_get(STATS_ROUTE, _get_stats)
    return app
