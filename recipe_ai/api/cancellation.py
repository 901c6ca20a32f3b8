"""Cancel in-flight generations when the HTTP client goes away."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)

T = TypeVar("T")

POLL_INTERVAL_S = 0.5


@asynccontextmanager
async def cancel_on_disconnect(request: Request, poll_interval: float = POLL_INTERVAL_S) -> AsyncIterator[asyncio.Event]:
    """
    Yield an event that is set once the client disconnects.

    The event is handed to the generation pipeline, which stops retrying
    and aborts any backoff sleep when it fires.
    """
    cancel_event = asyncio.Event()

    async def watch() -> None:
        while not cancel_event.is_set():
            if await request.is_disconnected():
                logger.info(
                    "Client disconnected, cancelling generation",
                    extra={"path": request.url.path},
                )
                cancel_event.set()
                return
            await asyncio.sleep(poll_interval)

    watcher = asyncio.create_task(watch())
    try:
        yield cancel_event
    finally:
        watcher.cancel()


async def run_cancellable(
    request: Request,
    operation: Callable[[asyncio.Event], Awaitable[T]],
    timeout: float,
) -> T:
    """
    Run ``operation(cancel_event)`` bounded by ``timeout`` seconds.

    Raises:
        HTTPException: 504 when the timeout elapses
    """
    async with cancel_on_disconnect(request) as cancel_event:
        try:
            return await asyncio.wait_for(operation(cancel_event), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error("Generation timed out after %.0fs", timeout, extra={"path": request.url.path})
            raise HTTPException(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                detail={
                    "error": "Timeout",
                    "detail": f"La generación tardó más de {timeout:.0f} segundos. Intenta nuevamente.",
                },
            ) from e
