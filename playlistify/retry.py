from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

import requests
from spotipy.exceptions import SpotifyException
from tenacity import RetryCallState, RetryError, Retrying, retry_if_exception

from .config import DEFAULT_SETTINGS, Settings
from .errors import RequestFailed

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSPORT_ERRORS = (requests.exceptions.RequestException, ConnectionError, TimeoutError)


def is_rate_limited(e: Optional[BaseException]) -> bool:
    return isinstance(e, SpotifyException) and e.http_status == 429


def _retry_after_seconds(e: BaseException) -> Optional[float]:
    headers = getattr(e, "headers", None) or {}
    raw = headers.get("Retry-After") or headers.get("retry-after")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def _is_retryable(e: BaseException) -> bool:
    return is_rate_limited(e) or isinstance(e, TRANSPORT_ERRORS)


class _wait_backoff_or_retry_after:
    """initial_delay doubled per attempt, unless a 429 says how long to wait."""

    def __init__(self, initial_delay: float):
        self.initial_delay = initial_delay

    def __call__(self, retry_state: RetryCallState) -> float:
        delay = self.initial_delay * (2 ** (retry_state.attempt_number - 1))
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if is_rate_limited(exc):
            return _retry_after_seconds(exc) or delay
        return delay


class _stop_after_failures:
    """Only transport failures count towards max_retries; 429s have their own cap."""

    def __init__(self, max_retries: int, max_rate_limit_waits: int):
        self.max_retries = max_retries
        self.max_rate_limit_waits = max_rate_limit_waits
        self.failures = 0
        self.rate_limited = 0

    def __call__(self, retry_state: RetryCallState) -> bool:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if is_rate_limited(exc):
            self.rate_limited += 1
            return self.rate_limited > self.max_rate_limit_waits
        self.failures += 1
        return self.failures >= self.max_retries


def _log_before_sleep(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    if is_rate_limited(exc):
        logger.warning("Rate limited. Retrying after %.1fs...", wait)
    else:
        logger.warning("Attempt %d failed (%s), retrying in %.1fs", retry_state.attempt_number, exc, wait)


def retry_request(
    request: Callable[[], T],
    max_retries: int = DEFAULT_SETTINGS.max_retries,
    initial_delay: float = DEFAULT_SETTINGS.initial_delay,
    max_rate_limit_waits: int = DEFAULT_SETTINGS.max_rate_limit_waits,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run a Spotify call with exponential backoff and 429 handling.

    Transport errors are retried up to max_retries times. A 429 waits for
    Retry-After (or the current backoff) without using up an attempt. Any other
    SpotifyException is a real response and is raised straight away.
    Raises RequestFailed once the attempts run out.
    """
    retrying = Retrying(
        retry=retry_if_exception(_is_retryable),
        stop=_stop_after_failures(max_retries, max_rate_limit_waits),
        wait=_wait_backoff_or_retry_after(initial_delay),
        before_sleep=_log_before_sleep,
        sleep=sleep,
    )
    try:
        return retrying(request)
    except RetryError as e:
        last = e.last_attempt
        raise RequestFailed(last.exception(), attempts=last.attempt_number) from last.exception()


def retry_with(settings: Settings, sleep: Callable[[float], None] = time.sleep) -> Callable[[Callable[[], T]], T]:
    """Bind retry_request to one Settings instance."""

    def run(request: Callable[[], T]) -> T:
        return retry_request(
            request,
            max_retries=settings.max_retries,
            initial_delay=settings.initial_delay,
            max_rate_limit_waits=settings.max_rate_limit_waits,
            sleep=sleep,
        )

    return run
