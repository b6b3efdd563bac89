"""
Retry handling for Cloudflare DDNS Updater.

This module provides an executor that runs an asynchronous operation and
retries it with exponential backoff when it fails.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryHandler:
    """
    Execute operations with retries upon failure.

    The delay before the retry that follows the i-th failure (0-indexed) is
    ``retry_delay * 2 ** i`` seconds. The handler keeps no state between
    calls to `execute`.
    """

    def __init__(
        self,
        max_retries: int,
        retry_delay: float,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """
        Initialize a RetryHandler.

        Parameters
        ----------
        max_retries : int
            Total number of attempts, including the first one.
        retry_delay : float
            Base delay before the first retry, in seconds.
        sleep : Callable[[float], Awaitable[object]], optional
            Coroutine function used to wait between attempts.

        Raises
        ------
        ValueError
            If `max_retries` is less than 1 or `retry_delay` is negative.
        """
        if max_retries < 1:
            msg = f"max_retries must be at least 1, got {max_retries}"
            raise ValueError(msg)
        if retry_delay < 0:
            msg = f"retry_delay must not be negative, got {retry_delay}"
            raise ValueError(msg)

        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    def delay_for(self, failure_index: int) -> float:
        """
        Get the delay to wait after a failed attempt.

        Parameters
        ----------
        failure_index : int
            0-indexed number of the failed attempt.

        Returns
        -------
        float
            Delay in seconds.
        """
        return self.retry_delay * 2**failure_index

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Execute an operation, retrying it when it raises.

        Parameters
        ----------
        operation : Callable[[], Awaitable[T]]
            Zero-argument callable returning the awaitable to run. It is
            called again for every attempt.

        Returns
        -------
        T
            The operation's result.

        Raises
        ------
        Exception
            The exception of the last attempt, unchanged.
        """
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as e:
                if attempt >= self.max_retries - 1:
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "Retry %d/%d failed: %s. Waiting %s seconds...",
                    attempt + 1,
                    self.max_retries,
                    e,
                    delay,
                )
                await self._sleep(delay)
                attempt += 1
