from __future__ import annotations

import asyncio
import logging
import os
import signal

from aiohttp import web

from manga_cache.application.service import CacheApplicationService
from manga_cache.infrastructure.config import Settings, load_settings
from manga_cache.infrastructure.logging import configure_logging
from manga_cache.infrastructure.memory_store import CacheStore
from manga_cache.transport.active_requests import ActiveRequests
from manga_cache.transport.http.stats_app import create_stats_app

logger = logging.getLogger(__name__)


def build_cache_store(settings: Settings) -> CacheStore:
    return CacheStore(
        max_size_bytes=settings.max_size_bytes,
        default_ttl=settings.default_ttl,
        cleanup_interval=settings.cleanup_interval,
    )


async def serve(settings: Settings | None = None) -> None:
    settings = settings or load_settings()

    cache_store = build_cache_store(settings)
    cache_app = CacheApplicationService(cache_store)
    active_requests = ActiveRequests()

    app = create_stats_app(cache_app, active_requests)

    if settings.log_level == "DEBUG":
        access_log = logger
    else:
        access_log = None
        logging.getLogger("aiohttp.access").disabled = True

    runner = web.AppRunner(app, access_log=access_log)
    await runner.setup()
    site = web.TCPSite(runner, settings.http_host, settings.http_port)
    await site.start()
    logger.info(
        "Cache stats server started on %s:%s (budget %sMB, default ttl %ss, sweep every %ss)",
        settings.http_host,
        settings.http_port,
        settings.max_size_mb,
        settings.default_ttl,
        settings.cleanup_interval,
    )

    stop_event = asyncio.Event()

    def _begin_shutdown() -> None:
        logger.info("Received shutdown signal, stopping cache service...")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _begin_shutdown)

    try:
        await stop_event.wait()
    finally:
        await asyncio.to_thread(cache_store.stop)
        await runner.cleanup()
        logger.info("Cache service stopped")


def main() -> None:
    configure_logging(
        os.getenv("CACHE_LOG_LEVEL", "INFO").upper(),
        os.getenv("CACHE_LOG_FORMAT", "text"),
    )
    try:
        settings = load_settings()
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    except Exception:
        logger.exception("Failed to start cache service")
        raise


if __name__ == "__main__":
    main()
