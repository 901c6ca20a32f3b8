"""Exponential backoff for transient model overload."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from recipe_ai.config import settings
from recipe_ai.utils.exceptions import GenerationCancelled, ModelConnectionError

logger = logging.getLogger(__name__)

T = TypeVar("T")

OVERLOAD_PATTERNS = ("503", "overloaded", "service unavailable", "rate limit")
CONNECTION_PATTERNS = ("fetch", "network")


def is_overload_error(error: BaseException) -> bool:
    """True for errors that mean the backend is saturated and may recover."""
    if isinstance(error, ModelConnectionError):
        return False
    message = str(error).lower()
    return any(pattern in message for pattern in OVERLOAD_PATTERNS)


def is_connection_error(error: BaseException) -> bool:
    if isinstance(error, (ModelConnectionError, ConnectionError)):
        return True
    message = str(error).lower()
    return any(pattern in message for pattern in CONNECTION_PATTERNS)


@dataclass
class RetryPolicy:
    """
    Retry an async operation on retryable errors with exponential backoff.

    Delay before attempt ``n + 1`` is ``base_delay * multiplier ** (n - 1)``:
    2s, 4s, 8s... No jitter. ``sleep`` is injectable so tests can use a fake clock.
    """

    max_attempts: int = 3
    base_delay: float = 2.0
    multiplier: float = 2.0
    is_retryable: Callable[[BaseException], bool] = is_overload_error
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay_seconds,
            multiplier=settings.retry_backoff_multiplier,
        )

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * self.multiplier ** (attempt - 1)

    async def _wait(self, delay: float, cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is None:
            await self.sleep(delay)
            return

        sleeper = asyncio.ensure_future(self.sleep(delay))
        canceller = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, canceller}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, canceller):
                if not task.done():
                    task.cancel()
        if cancel_event.is_set():
            raise GenerationCancelled("Generation cancelled during backoff")

    async def run(
        self,
        operation: Callable[[int], Awaitable[T]],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> T:
        """
        Call ``operation(attempt)`` until it succeeds or the policy gives up.

        Non-retryable errors, and retryable ones on the last attempt, propagate unchanged.
        """
        attempt = 1
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise GenerationCancelled("Generation cancelled before attempt %d" % attempt)

            try:
                return await operation(attempt)
            except Exception as e:
                if attempt >= self.max_attempts or not self.is_retryable(e):
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "Model overloaded on attempt %d/%d, retrying in %.1fs: %s",
                    attempt,
                    self.max_attempts,
                    delay,
                    e,
                )
                await self._wait(delay, cancel_event)
                attempt += 1
