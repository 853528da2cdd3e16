"""
Request throttling for the statement endpoints that do real work.

Generation runs aggregate queries and an insert; the PDF route renders a
document on every call. Each decorated endpoint gets its own sliding
window, counted per client IP. State is in-memory and per process.
"""

import logging
import math
import time
from collections import deque
from functools import wraps
from threading import Lock
from typing import Callable, Dict, Optional

from flask import current_app, jsonify

from hostbaku.utils.audit import get_client_ip

logger = logging.getLogger(__name__)


class SlidingWindow:
    """Hit counter over a trailing window of window_seconds, per client."""

    def __init__(self, max_hits: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.max_hits = max_hits
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: Dict[str, deque] = {}
        self._lock = Lock()

    def hit(self, client: str) -> Optional[int]:
        """
        Count one request from client.

        Returns None when the request is allowed, otherwise the whole
        seconds until the oldest hit leaves the window. Refused requests
        are not counted.
        """
        now = self._clock()
        with self._lock:
            hits = self._hits.setdefault(client, deque())
            while hits and hits[0] <= now - self.window_seconds:
                hits.popleft()

            if len(hits) >= self.max_hits:
                return max(1, math.ceil(hits[0] + self.window_seconds - now))

            hits.append(now)
            return None

    def clear(self):
        with self._lock:
            self._hits.clear()


_windows: Dict[str, SlidingWindow] = {}


def reset_limits():
    """Forget every recorded hit on every throttled endpoint."""
    for window in _windows.values():
        window.clear()


def _too_many_requests(retry_after):
    response = jsonify({
        'success': False,
        'error': 'Rate limit exceeded',
        'retry_after': retry_after,
    })
    response.status_code = 429
    response.headers['Retry-After'] = str(retry_after)
    return response


def throttle(max_hits=30, window_seconds=60):
    """
    Limit a view to max_hits requests per client IP per window.

    Skipped entirely when the app config sets RATELIMIT_ENABLED to False.
    """
    def decorator(view):
        name = f"{view.__module__}.{view.__name__}"
        window = _windows[name] = SlidingWindow(max_hits, window_seconds)

        @wraps(view)
        def throttled(*args, **kwargs):
            if current_app.config.get('RATELIMIT_ENABLED', True):
                client = get_client_ip()
                retry_after = window.hit(client)
                if retry_after is not None:
                    logger.warning(f"Throttled {client} on {name}, retry in {retry_after}s")
                    return _too_many_requests(retry_after)
            return view(*args, **kwargs)

        return throttled
    return decorator
