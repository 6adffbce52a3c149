"""
Rate Limiter - serializes outbound calls with a minimum delay between them
"""
from __future__ import annotations

import logging
import threading
import time
from collections import deque
from concurrent.futures import Future
from typing import Any, Callable, Deque, Optional, Tuple

from .config import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)

_Task = Tuple[Future, Callable[..., Any], tuple, dict]


class RateLimiter:
    """
    FIFO request queue that runs one task at a time

    Usage:
        limiter = RateLimiter(min_delay=0.1)
        futures = [limiter.enqueue(sp.search, q=q, type="track") for q in queries]
        results = [f.result() for f in futures]

    A drain thread is started when work arrives and exits once the queue is
    empty. A failing task only fails its own future.
    """

    def __init__(
        self,
        min_delay: float = DEFAULT_SETTINGS.min_request_delay,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if min_delay < 0:
            raise ValueError("min_delay must be >= 0")
        self.min_delay = min_delay
        self._clock = clock
        self._sleep = sleep
        self._queue: Deque[_Task] = deque()
        self._lock = threading.Lock()
        self._running = False
        self._last_dispatch: Optional[float] = None
        self.dispatched = 0

    @property
    def running(self) -> bool:
        return self._running

    def enqueue(self, fn: Callable[..., Any], *args, **kwargs) -> Future:
        fut: Future = Future()
        with self._lock:
            self._queue.append((fut, fn, args, kwargs))
            start = not self._running
            self._running = True
        if start:
            threading.Thread(target=self._drain, name="playlistify-rate-limiter", daemon=True).start()
        return fut

    def _wait_turn(self) -> None:
        if self._last_dispatch is None:
            return
        elapsed = self._clock() - self._last_dispatch
        if elapsed < self.min_delay:
            self._sleep(self.min_delay - elapsed)

    def _drain(self) -> None:
        while True:
            with self._lock:
                if not self._queue:
                    self._running = False
                    return
                fut, fn, args, kwargs = self._queue.popleft()

            if not fut.set_running_or_notify_cancel():
                continue
            self._wait_turn()
            self._last_dispatch = self._clock()
            self.dispatched += 1
            try:
                result = fn(*args, **kwargs)
            except Exception as e:
                logger.error("Error in rate limited call %s: %s", getattr(fn, "__name__", fn), e)
                fut.set_exception(e)
            else:
                fut.set_result(result)
