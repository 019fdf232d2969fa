"""Exponential backoff for flaky network fetches."""

import functools
import time

from .log import get_logger


def backoff_delays(max_retries: int, base_delay: float, max_delay: float | None = None) -> list[float]:
    """Sleep before each retry: base_delay * 2^attempt, capped at ``max_delay``."""
    delays = [base_delay * (2 ** attempt) for attempt in range(max_retries)]
    if max_delay is not None:
        delays = [min(d, max_delay) for d in delays]
    return delays


def with_retry(max_retries: int = 3, base_delay: float = 2.0, max_delay: float | None = None,
               retry_on: tuple = (Exception,)):
    """Decorator: retry on the exceptions in ``retry_on``; anything else propagates at once."""
    delays = backoff_delays(max_retries, base_delay, max_delay)

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger("retry")
            for attempt, delay in enumerate(delays + [None], start=1):
                try:
                    return func(*args, **kwargs)
                except retry_on as e:
                    if delay is None:
                        logger.error("%s failed after %d attempts: %s", func.__name__, attempt, e)
                        raise
                    logger.warning(
                        "%s failed (attempt %d/%d): %s, retrying in %.1fs",
                        func.__name__, attempt, len(delays) + 1, e, delay,
                    )
                    time.sleep(delay)
        return wrapper
    return decorator
