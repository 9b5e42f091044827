"""Bounded exponential backoff for transient document API failures."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

import httpx

from app.catalyst.exceptions import RemoteApiError
from app.logging.logger import Log

T = TypeVar("T")

TRANSIENT_HTTP_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def is_transient_error(exc: Exception) -> bool:
    """True for 429, 5xx and network-level failures."""
    if isinstance(exc, RemoteApiError):
        return exc.status_code == 429 or 500 <= exc.status_code <= 599
    return isinstance(exc, httpx.TransportError)


@dataclass
class RetryPolicy:
    """Retries a call on transient errors, doubling the delay each time.

    max_attempts counts the first call, so max_attempts=5 tolerates four
    transient failures. Non-transient errors propagate immediately.
    """

    max_attempts: int = 5
    base_delay: float = 0.6
    is_retryable: Callable[[Exception], bool] = is_transient_error
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def call(self, func: Callable[[], T], description: str = "request") -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                return func()
            except Exception as exc:
                if not self.is_retryable(exc) or attempt >= self.max_attempts:
                    raise
                delay = self.base_delay * (2 ** (attempt - 1))
                Log.warning(
                    f"Transient error on {description} "
                    f"(attempt {attempt}/{self.max_attempts}), retrying in {delay:.1f}s: {exc}"
                )
                self.sleep(delay)
