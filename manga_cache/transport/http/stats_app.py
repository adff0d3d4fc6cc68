from __future__ import annotations

import asyncio
import json
import logging
import time
import uuid
from datetime import datetime, timezone

from aiohttp import web

from manga_cache.application.request_context import request_id_var
from manga_cache.application.service import CacheApplicationService
from manga_cache.transport.active_requests import ActiveRequests, active_requests_middleware

logger = logging.getLogger(__name__)

PERFORMANCE_STATS_PATH = "/api/performance-stats"
REQUEST_ID_HEADER = "x-request-id"


@web.middleware
async def request_id_middleware(request: web.Request, handler):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    token = request_id_var.set(request_id)
    try:
        response = await handler(request)
    finally:
        request_id_var.reset(token)

    response.headers[REQUEST_ID_HEADER] = request_id
    return response


def _json_response(payload: dict, status: int = 200) -> web.Response:
    return web.Response(text=json.dumps(payload), status=status, content_type="application/json")


class PerformanceStatsHandler:
    def __init__(self, app: CacheApplicationService, active_requests: ActiveRequests):
        self._app = app
        self._active_requests = active_requests
        self._start_time = time.monotonic()

    async def get_stats(self, request: web.Request) -> web.Response:
        try:
            stats = await asyncio.to_thread(self._app.get_stats)
            return _json_response(
                {
                    "success": True,
                    "stats": {
                        "cache": {
                            "totalItems": stats.total_items,
                            "totalSize": stats.total_size,
                            "hitRate": stats.hit_rate,
                            "missRate": stats.miss_rate,
                            "hits": stats.hits,
                            "misses": stats.misses,
                            "sizeReadable": stats.size_readable,
                        },
                        "timestamp": datetime.now(timezone.utc).isoformat(),
                    },
                }
            )
        except Exception:
            logger.exception("Failed to get performance stats")
            return _json_response(
                {"success": False, "error": "Failed to get performance stats"}, status=500
            )

    async def clear_cache(self, request: web.Request) -> web.Response:
        try:
            await asyncio.to_thread(self._app.clear)
            return _json_response({"success": True, "message": "Cache cleared successfully"})
        except Exception:
            logger.exception("Failed to clear cache")
            return _json_response({"success": False, "error": "Failed to clear cache"}, status=500)

    async def health_check(self, request: web.Request) -> web.Response:
        try:
            stats = await asyncio.to_thread(self._app.get_stats)
            uptime = time.monotonic() - self._start_time
            return _json_response(
                {
                    "status": "healthy",
                    "uptime_seconds": round(uptime, 2),
                    "cache_items": stats.total_items,
                    "cache_size_bytes": stats.total_size,
                    "max_size_bytes": stats.max_size,
                    "evictions": stats.evictions,
                    "expirations": stats.expirations,
                    "active_requests": self._active_requests.value,
                    "timestamp": time.time(),
                }
            )
        except Exception as exc:
            logger.exception("Health check error")
            return _json_response({"status": "error", "message": str(exc)}, status=503)

    async def liveness_check(self, request: web.Request) -> web.Response:
        try:
            uptime = time.monotonic() - self._start_time
            return _json_response(
                {
                    "status": "alive",
                    "uptime_seconds": round(uptime, 2),
                    "timestamp": time.time(),
                }
            )
        except Exception as exc:
            logger.exception("Liveness check error")
            return _json_response({"status": "error", "message": str(exc)}, status=503)


def create_stats_app(
    cache_app: CacheApplicationService,
    active_requests: ActiveRequests | None = None,
) -> web.Application:
    active_requests = active_requests or ActiveRequests()
    handler = PerformanceStatsHandler(cache_app, active_requests)

    app = web.Application(
        middlewares=[request_id_middleware, active_requests_middleware(active_requests)]
    )
    app.router.add_get(PERFORMANCE_STATS_PATH, handler.get_stats)
    app.router.add_delete(PERFORMANCE_STATS_PATH, handler.clear_cache)
    app.router.add_get("/health", handler.health_check)
    app.router.add_get("/live", handler.liveness_check)

    async def root_handler(request: web.Request) -> web.Response:
        return _json_response(
            {
                "service": "manga-cache",
                "endpoints": [PERFORMANCE_STATS_PATH, "/health", "/live"],
            }
        )

    app.router.add_get("/", root_handler)
    return app
