"""Retry with exponential backoff for outbound LLM calls."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from bankai.errors import QuotaExceededError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_STATUS = {429, 503}


def _status_of(error: BaseException) -> Optional[int]:
    """Return the HTTP-like status carried by *error*, if any."""
    for attr in ("status_code", "code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return None


def is_transient_error(error: BaseException) -> bool:
    """True for rate-limit (429) or overload (503) signatures."""
    if _status_of(error) in TRANSIENT_STATUS:
        return True
    message = str(error)
    return "429" in message or "503" in message


def is_quota_error(error: BaseException) -> bool:
    """True when *error* signals an exhausted rate or usage quota."""
    if isinstance(error, QuotaExceededError):
        return True
    return _status_of(error) == 429 or "429" in str(error)


async def retry_operation(
    operation: Callable[[], Awaitable[T]],
    retries: int = 2,
    initial_delay: float = 20.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await *operation*, retrying transient failures with doubling backoff.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        retries: Extra attempts allowed after the first one
        initial_delay: Seconds to wait before the first retry
        sleep: Awaitable sleep, injectable for tests

    Returns:
        The first successful result

    Raises:
        The last error, unchanged, once it is non-transient or the
        budget is spent
    """
    remaining = retries
    delay = initial_delay
    while True:
        try:
            return await operation()
        except Exception as e:
            if remaining <= 0 or not is_transient_error(e):
                raise
            logger.warning("Provider rate limit hit; pausing %.0fs before retry (%d left)", delay, remaining)
            await sleep(delay)
            remaining -= 1
            delay *= 2
