"""Retry helper for network-bound operations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..core.exceptions import IntegrityError, TransportError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (TransportError, IntegrityError)


async def retry_async(
    execution: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    wait_time: float = 0.0,
    description: str = "execute request",
    retry_on: tuple[type[Exception], ...] = RETRYABLE_ERRORS,
) -> T:
    """Run ``execution`` until it succeeds or attempts run out.

    Only errors listed in ``retry_on`` are retried; anything else propagates
    on the first failure. When attempts are exhausted the last error is
    re-raised unchanged.

    Args:
        execution: Zero-argument coroutine factory, called once per attempt
        attempts: Total number of attempts (>= 1)
        wait_time: Seconds to sleep between attempts
        description: Human readable action, used in log messages
        retry_on: Exception types considered transient

    Raises:
        ValidationError: If ``attempts`` is lower than 1
    """
    if attempts < 1:
        raise ValidationError("Please specify at least one attempt for the retry function")

    remaining = attempts
    while True:
        try:
            return await execution()
        except retry_on as e:
            remaining -= 1
            if remaining <= 0:
                logger.error(
                    "retries_exhausted",
                    extra={
                        "description": description,
                        "attempts": attempts,
                        "error_type": type(e).__name__,
                        "error_message": str(e),
                    },
                )
                raise
            logger.info(
                "retry_scheduled",
                extra={
                    "description": description,
                    "attempts_left": remaining,
                    "wait_time": wait_time,
                    "error_type": type(e).__name__,
                },
            )
            if wait_time > 0:
                await asyncio.sleep(wait_time)
