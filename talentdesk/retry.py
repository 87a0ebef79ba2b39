"""
Retry logic with exponential backoff for the API client.

Only failures that never reached the server (connection refused, timeouts)
and retryable HTTP statuses are retried; validation and not-found answers
are returned to the caller immediately.
"""

import time
import functools
from typing import Callable, Type, Tuple, Optional

from .logger import get_logger


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""
    pass


def _log_retry(attempt: int, exc: Exception, delay: float) -> None:
    get_logger().warning(
        "Retrying request",
        attempt=attempt,
        delay=round(delay, 2),
        error=type(exc).__name__,
    )


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable] = _log_retry,
):
    """
    Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (0 = no retries)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries in seconds
        exponential_base: Base for exponential calculation (delay *= base)
        exceptions: Tuple of exceptions to catch and retry
        on_retry: Callback(attempt, exception, delay); logs a warning by default

    Example:
        @exponential_backoff(max_retries=2, exceptions=(requests.ConnectionError,))
        def fetch(url):
            return requests.get(url, timeout=10)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_retries:
                        raise RetryError(
                            f"Failed after {max_retries + 1} attempts: {e}"
                        ) from e

                    current_delay = min(delay, max_delay)
                    if on_retry:
                        on_retry(attempt + 1, e, current_delay)
                    time.sleep(current_delay)
                    delay *= exponential_base

        return wrapper
    return decorator


def should_retry_http_status(status_code: int) -> bool:
    """
    Check if HTTP status code indicates a retryable error.

    Args:
        status_code: HTTP status code

    Returns:
        True if should retry
    """
    retryable_codes = {
        408,  # Request Timeout
        429,  # Too Many Requests
        502,  # Bad Gateway
        503,  # Service Unavailable
        504,  # Gateway Timeout
    }

    return status_code in retryable_codes


class RetryableStatus(Exception):
    """Response carried a retryable status; raised so the backoff loop sees it."""

    def __init__(self, response):
        super().__init__(f"HTTP {response.status_code}")
        self.response = response
