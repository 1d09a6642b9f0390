"""
Resilience utilities for outbound delivery.

This module provides:
- retry_with_backoff decorator for transient delivery errors
- Partial failure reporting for a poll cycle
"""

import asyncio
import logging
from functools import wraps
from typing import Awaitable, Callable, List, Optional, TypeVar, ParamSpec

logger = logging.getLogger(__name__)

P = ParamSpec('P')
T = TypeVar('T')


def backoff_delay(
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
) -> float:
    """Seconds to wait after failed attempt number ``attempt`` (0-based)."""
    return min(base_delay * (exponential_base ** attempt), max_delay)


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: tuple = (Exception,)
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Decorator retrying a coroutine function with exponential backoff.

    Only ``exceptions`` are retried; anything else propagates at once. The
    git command runner never retries: a failed git invocation is reported
    for its repository and the next poll cycle tries again.

    Args:
        max_retries: Total number of attempts, at least one
        base_delay: Delay in seconds after the first failed attempt
        max_delay: Upper bound for any single delay
        exponential_base: Growth factor between consecutive delays
        exceptions: Exception types treated as transient

    Returns:
        Decorator for async functions

    Example:
        @retry_with_backoff(max_retries=3, exceptions=(smtplib.SMTPServerDisconnected,))
        async def deliver(message):
            ...
    """
    attempts = max(1, max_retries)

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            attempt = 0
            while True:
                try:
                    result = await func(*args, **kwargs)
                except exceptions as e:
                    attempt += 1
                    if attempt >= attempts:
                        logger.error(f"{func.__name__} gave up after {attempts} attempts: {e}")
                        raise
                    delay = backoff_delay(attempt - 1, base_delay, max_delay, exponential_base)
                    logger.warning(
                        f"{func.__name__} attempt {attempt}/{attempts} failed: {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )
                    await asyncio.sleep(delay)
                    continue

                if attempt:
                    logger.info(f"{func.__name__} succeeded on attempt {attempt + 1}/{attempts}")
                return result

        return wrapper

    return decorator


def handle_partial_failure(
    operation_name: str,
    total_items: int,
    successful_items: int,
    errors: List[str],
    context: Optional[dict] = None
) -> None:
    """
    Log the outcome of a batch in which individual items may fail.

    Args:
        operation_name: Name of the operation
        total_items: Total number of items processed
        successful_items: Number of successful items
        errors: Error messages, one per failed item
        context: Additional context information
    """
    failed_items = total_items - successful_items
    extra = {
        "operation": operation_name,
        "total_items": total_items,
        "details": context or {},
    }

    if failed_items <= 0:
        logger.info(
            f"{operation_name} completed successfully: {successful_items}/{total_items}",
            extra=extra,
        )
        return

    extra.update(successful_items=successful_items, failed_items=failed_items, errors=errors[:10])
    logger.warning(
        f"Partial failure in {operation_name}: "
        f"{successful_items}/{total_items} succeeded, {failed_items} failed",
        extra=extra,
    )
