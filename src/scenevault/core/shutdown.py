"""In-flight mutation tracking for graceful shutdown."""

import asyncio
from collections.abc import AsyncGenerator, Coroutine
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from src.scenevault.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _log_orphaned_failure(task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "Mutation failed after its caller went away",
            error=str(exc),
            error_type=type(exc).__name__,
        )


class MutationTracker:
    """Counts storage mutations that are queued or running.

    Shutdown waits for the count to reach zero so no save, revert or delete
    is cut off half way.
    """

    def __init__(self) -> None:
        self._in_flight = 0
        self._shutting_down = False
        self._drain_event = asyncio.Event()
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def is_shutting_down(self) -> bool:
        """Check if the application is shutting down."""
        return self._shutting_down

    @property
    def in_flight_count(self) -> int:
        """Get the current number of in-flight mutations."""
        return self._in_flight

    @asynccontextmanager
    async def track(self) -> AsyncGenerator[None]:
        """Context manager to track one mutation."""
        self._in_flight += 1
        self._drain_event.clear()
        logger.debug("Mutation started", in_flight=self._in_flight)
        try:
            yield
        finally:
            self._in_flight -= 1
            logger.debug("Mutation finished", in_flight=self._in_flight)
            if self._in_flight == 0:
                self._drain_event.set()

    async def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run a mutation in its own task and wait for its result.

        Cancelling the caller (e.g. a client disconnect) does not cancel the
        mutation: it runs to completion or fails on its own, and the result is
        simply not delivered. A failure nobody is left to receive is logged.
        """
        task = asyncio.create_task(self._tracked(coro))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            task.add_done_callback(_log_orphaned_failure)
            raise

    async def _tracked(self, coro: Coroutine[Any, Any, T]) -> T:
        async with self.track():
            return await coro

    async def start_shutdown(self) -> None:
        """Mark the application as shutting down."""
        logger.info("Mutation tracker entering shutdown mode")
        self._shutting_down = True
        if self._in_flight == 0:
            self._drain_event.set()
        else:
            logger.info(f"Waiting for {self._in_flight} in-flight mutations to complete")

    async def wait_for_drain(self, timeout: float) -> bool:
        """
        Wait for all in-flight mutations to complete.

        Args:
            timeout: Maximum time to wait in seconds

        Returns:
            True if all mutations completed within timeout, False otherwise
        """
        try:
            await asyncio.wait_for(self._drain_event.wait(), timeout=timeout)
            logger.info("All mutations drained successfully")
            return True
        except TimeoutError:
            logger.warning(
                f"Shutdown timeout after {timeout}s - {self._in_flight} mutations still in-flight"
            )
            return False
