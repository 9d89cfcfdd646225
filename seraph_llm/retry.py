"""
Caller-side retry utilities.

LLMClient never retries on its own: a timeout or rate limit is surfaced to
the caller once. These helpers let a caller opt in to re-issuing a request:
- Exponential backoff with jitter
- Rate-limit errors wait for their ``retry_after`` hint
- Non-retryable errors are re-raised immediately
"""

import asyncio
import functools
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from seraph_llm.exceptions import LLMError, RateLimitExceededError, is_retryable
from seraph_llm.logging import get_logger

logger = get_logger("retry")

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Calculate delay with exponential backoff.

    Args:
        attempt: Current attempt number (0-indexed)
        config: Retry configuration

    Returns:
        Delay in seconds
    """
    delay = config.base_delay * (config.exponential_base ** attempt)
    delay = min(delay, config.max_delay)

    if config.jitter:
        # +/-25% jitter
        jitter_factor = 0.75 + random.random() * 0.5
        delay *= jitter_factor

    return delay


async def _run_with_retry(
    func: Callable[..., Awaitable[T]],
    config: RetryConfig,
    retryable_exceptions: tuple,
    args: tuple,
    kwargs: dict,
) -> T:
    last_exception: BaseException | None = None
    attempts = max(1, config.max_attempts)

    for attempt in range(attempts):
        try:
            return await func(*args, **kwargs)
        except retryable_exceptions as e:
            last_exception = e

            if isinstance(e, LLMError) and not is_retryable(e):
                raise

            if attempt < attempts - 1:
                if isinstance(e, RateLimitExceededError):
                    delay = e.retry_after
                else:
                    delay = calculate_delay(attempt, config)
                logger.warn(
                    f"Retry attempt {attempt + 1}/{attempts}",
                    error=str(e),
                    delay=f"{delay:.1f}s"
                )
                await asyncio.sleep(delay)

    raise last_exception


def retry_async(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    retryable_exceptions: tuple = (LLMError,),
):
    """
    Decorator for async retry with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts
        base_delay: Initial delay between retries
        retryable_exceptions: Tuple of exception types to retry
    """
    config = RetryConfig(max_attempts=max_attempts, base_delay=base_delay)

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await _run_with_retry(func, config, retryable_exceptions, args, kwargs)
        return wrapper
    return decorator


async def with_retry(
    coro_func: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    **kwargs: Any
) -> T:
    """
    Execute coroutine with retry.

    Example:
        reply = await with_retry(client.generate, "hi", model, max_attempts=3)
    """
    config = RetryConfig(max_attempts=max_attempts, base_delay=base_delay)
    return await _run_with_retry(coro_func, config, (LLMError,), args, kwargs)
