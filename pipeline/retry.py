"""Retry combinator for calls to unreliable services."""
import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryResult(Generic[T]):
    """Outcome of a retried operation."""
    success: bool
    value: Optional[T] = None
    error: Optional[BaseException] = None
    attempts: int = 0
    errors: List[BaseException] = field(default_factory=list)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    is_transient: Callable[[BaseException], bool],
    max_attempts: int = 3,
    delay: float = 2.0,
    jitter: float = 0.0,
    label: str = "operation",
) -> RetryResult[T]:
    """
    Run `operation` up to `max_attempts` times.

    Only failures for which `is_transient` returns True are retried, after a
    fixed `delay` (plus up to `jitter` seconds). Failures are returned in the
    result rather than raised.
    """
    errors: List[BaseException] = []

    for attempt in range(1, max_attempts + 1):
        try:
            value = await operation()
            return RetryResult(success=True, value=value, attempts=attempt, errors=errors)
        except Exception as e:
            errors.append(e)
            retryable = is_transient(e)

            if not retryable or attempt == max_attempts:
                logger.error(f"{label} failed on attempt {attempt}/{max_attempts}: {e}")
                return RetryResult(success=False, error=e, attempts=attempt, errors=errors)

            wait = delay + (random.uniform(0, jitter) if jitter else 0.0)
            logger.warning(
                f"{label} failed on attempt {attempt}/{max_attempts}: {e}. Retrying in {wait:.1f}s"
            )
            if wait > 0:
                await asyncio.sleep(wait)

    return RetryResult(success=False, attempts=0, errors=errors)
