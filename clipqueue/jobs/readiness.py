"""Single-flight readiness gate for the executor's backing resource."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class ReadinessGate:
    """Tracks whether the executor is initialized.

    Concurrent callers share one in-flight initialization task. After a
    failure, calls within retry_interval seconds return False without
    trying again.
    """

    def __init__(
        self,
        initializer: Callable[[], Awaitable[bool]],
        retry_interval: float = 5.0,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self._initializer = initializer
        self._retry_interval = retry_interval
        self._monotonic = monotonic
        self._ready = False
        self._task: Optional[asyncio.Task] = None
        self._last_failure: Optional[float] = None

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def initializing(self) -> bool:
        return self._task is not None and not self._task.done()

    async def ensure_ready(self, force: bool = False) -> bool:
        if self._ready:
            return True

        if self._task is None or self._task.done():
            if (
                not force
                and self._last_failure is not None
                and self._monotonic() - self._last_failure < self._retry_interval
            ):
                return False
            self._task = asyncio.create_task(self._initialize())

        # shield: a cancelled waiter must not abort the shared attempt
        return await asyncio.shield(self._task)

    async def close(self) -> None:
        """Cancel an in-flight initialization, if any."""
        if self._task is None or self._task.done():
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _initialize(self) -> bool:
        logger.info("Initializing executor...")
        try:
            ready = bool(await self._initializer())
        except Exception as e:
            logger.error("Executor initialization failed: %s", e)
            ready = False

        self._ready = ready
        if ready:
            self._last_failure = None
            logger.info("Executor ready")
        else:
            self._last_failure = self._monotonic()
            logger.warning("Executor not ready")
        return ready
