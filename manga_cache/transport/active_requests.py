from __future__ import annotations

import logging
import threading

from aiohttp import web

logger = logging.getLogger(__name__)


class ActiveRequests:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def increment(self) -> None:
        with self._lock:
            self._value += 1

    def decrement(self) -> None:
        with self._lock:
            self._value -= 1

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


def active_requests_middleware(active_requests: ActiveRequests):
    @web.middleware
    async def middleware(request: web.Request, handler):
        active_requests.increment()
        logger.debug("HTTP started %s %s (active=%s)", request.method, request.path, active_requests.value)
        try:
            return await handler(request)
        finally:
            active_requests.decrement()
            logger.debug("HTTP finished %s %s (active=%s)", request.method, request.path, active_requests.value)

    return middleware
