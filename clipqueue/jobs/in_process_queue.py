"""In-process operation queue using asyncio.

Runs executor calls strictly one at a time, in arrival order, in a drain
task that exists only while there is queued work. Records live in memory
only and are lost when the process exits.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Deque, Dict, Optional, Set

from clipqueue.executors.base import Executor
from clipqueue.jobs.dispatcher import OperationDispatcher
from clipqueue.jobs.errors import (
    CapacityExceeded,
    ExecutorFailure,
    InvalidOperationState,
    OperationNotFound,
    OperationTimeout,
    ServiceUnavailable,
)
from clipqueue.jobs.models import (
    EnqueueReceipt,
    GenerationInput,
    OperationRecord,
    OperationSnapshot,
    OperationStatus,
    OperationSummary,
    QueueOverview,
    utcnow,
)
from clipqueue.jobs.readiness import ReadinessGate
from clipqueue.jobs.state import validate_transition
from clipqueue.storage.artifacts import ArtifactStore

logger = logging.getLogger(__name__)

SERVICE_UNAVAILABLE = "service unavailable"
CANCELLED_BY_USER = "cancelled by user"
SHUTTING_DOWN = "queue shut down"


@dataclass
class QueueConfig:
    max_queue_size: int = 10
    operation_timeout: float = 300.0
    cleanup_interval: float = 60.0
    operation_ttl: float = 30 * 60
    readiness_retry: float = 5.0

    @classmethod
    def from_settings(cls, settings) -> "QueueConfig":
        return cls(
            max_queue_size=settings.max_queue_size,
            operation_timeout=settings.operation_timeout_seconds,
            cleanup_interval=settings.cleanup_interval_seconds,
            operation_ttl=settings.operation_ttl_seconds,
            readiness_retry=settings.readiness_retry_seconds,
        )


class OperationQueue(OperationDispatcher):
    """Local async operation queue. Serializes all executor calls.

    Every mutation of the record store and pending queue happens between
    suspension points, so no lock is needed on a single event loop.
    """

    def __init__(
        self,
        executor: Executor,
        config: Optional[QueueConfig] = None,
        artifacts: Optional[ArtifactStore] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._executor = executor
        self._config = config or QueueConfig()
        self._artifacts = artifacts
        self._clock = clock

        self._operations: Dict[str, OperationRecord] = {}
        self._pending: Deque[str] = deque()
        self._current: Optional[str] = None

        self._gate = ReadinessGate(
            executor.initialize, retry_interval=self._config.readiness_retry
        )
        self._drain_task: Optional[asyncio.Task] = None
        self._reaper_task: Optional[asyncio.Task] = None
        # executor calls (timed out or interrupted by stop) told to cancel but not awaited
        self._abandoned: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def config(self) -> QueueConfig:
        return self._config

    @property
    def service_ready(self) -> bool:
        return self._gate.ready

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        self._closed = False
        if self._reaper_task is None or self._reaper_task.done():
            self._reaper_task = asyncio.create_task(self._reaper_loop())

    async def stop(self) -> None:
        self._closed = True
        for task in (self._reaper_task, self._drain_task):
            if task is None or task.done():
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._reaper_task = None
        self._drain_task = None
        await self._gate.close()

        for task in list(self._abandoned):
            task.cancel()

        if self._pending:
            self._fail_pending(SHUTTING_DOWN)

    # ------------------------------------------------------------------
    # Admission, status, cancellation
    # ------------------------------------------------------------------

    async def enqueue(self, params: GenerationInput) -> EnqueueReceipt:
        if self._closed:
            raise ServiceUnavailable(SHUTTING_DOWN)

        active = len(self._pending) + (1 if self._current is not None else 0)
        if active >= self._config.max_queue_size:
            raise CapacityExceeded(self._config.max_queue_size)

        now = self._clock()
        record = OperationRecord(input=params, created_at=now, updated_at=now)
        self._operations[record.id] = record
        self._pending.append(record.id)
        position = len(self._pending)

        logger.info("Enqueued operation %s, queue position: %d", record.id, position)
        self._schedule_drain()

        return EnqueueReceipt(
            operation_id=record.id,
            status=record.status,
            position=position,
            queue_length=len(self._pending),
        )

    async def get_status(self, operation_id: str) -> Optional[OperationSnapshot]:
        record = self._operations.get(operation_id)
        if record is None:
            return None
        return self._snapshot(record)

    async def get_all_status(self, limit: int = 20) -> QueueOverview:
        # newest first; insertion order breaks created_at ties
        records = sorted(
            reversed(list(self._operations.values())),
            key=lambda r: r.created_at,
            reverse=True,
        )
        return QueueOverview(
            queue_length=len(self._pending),
            processing=self._current is not None,
            current_operation_id=self._current,
            service_ready=self._gate.ready,
            initializing=self._gate.initializing,
            operations=[
                OperationSummary(
                    operation_id=r.id,
                    status=r.status,
                    created_at=r.created_at,
                    updated_at=r.updated_at,
                )
                for r in records[:max(limit, 0)]
            ],
        )

    async def cancel(self, operation_id: str) -> None:
        record = self._operations.get(operation_id)
        if record is None:
            raise OperationNotFound(operation_id)
        if record.status is not OperationStatus.QUEUED:
            raise InvalidOperationState(operation_id, record.status.value, "cancel")

        self._pending.remove(operation_id)
        self._fail(record, CANCELLED_BY_USER)
        logger.info("Cancelled operation %s", operation_id)

    async def ensure_ready(self, force: bool = False) -> bool:
        return await self._gate.ensure_ready(force=force)

    async def health(self) -> Dict[str, Any]:
        base = {
            "initializing": self._gate.initializing,
            "queue_length": len(self._pending),
            "processing": self._current is not None,
        }
        try:
            status = await self._executor.health()
        except Exception as e:
            logger.warning("Executor health check failed: %s", e)
            return {
                "available": False,
                "authenticated": False,
                "connected": False,
                **base,
                "error": str(e),
            }
        return {
            "available": self._gate.ready,
            "authenticated": status.authenticated,
            "connected": status.connected,
            **base,
        }

    # ------------------------------------------------------------------
    # Drain pass
    # ------------------------------------------------------------------

    def _schedule_drain(self) -> None:
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.create_task(self._drain())

    async def _drain(self) -> None:
        """Process operations one at a time until the pending queue is empty."""
        while self._pending:
            if not self._gate.ready:
                if not await self._gate.ensure_ready():
                    logger.error("Executor not ready, failing %d queued operation(s)",
                                 len(self._pending))
                    self._fail_pending(SERVICE_UNAVAILABLE)
                    return
                if not self._pending:
                    break

            operation_id = self._pending.popleft()
            record = self._operations.get(operation_id)
            if record is None:
                continue

            self._current = operation_id
            self._transition(record, OperationStatus.PROCESSING)
            record.started_at = record.updated_at
            logger.info("Processing operation %s", operation_id)

            try:
                result = await self._execute_with_timeout(record)
            except asyncio.CancelledError:
                self._fail(record, SHUTTING_DOWN)
                self._current = None
                raise
            except OperationTimeout as e:
                self._fail(record, str(e))
                logger.warning("Operation %s timed out", operation_id)
            except Exception as e:
                self._fail(record, str(e) or type(e).__name__)
                logger.error("Failed operation %s: %s", operation_id, record.error)
            else:
                self._transition(record, OperationStatus.COMPLETED)
                record.result = result
                record.completed_at = record.updated_at
                logger.info("Completed operation %s", operation_id)

            self._current = None

    async def _execute_with_timeout(self, record: OperationRecord) -> Dict[str, Any]:
        """Run the executor, giving up on it after the operation timeout.

        On timeout the executor task is cancelled but not awaited; whatever
        it does outside the event loop (threads, subprocesses, remote jobs)
        may keep running.
        """
        operation_id = record.id

        def on_progress(message: str) -> None:
            if self._current != operation_id or record.status is not OperationStatus.PROCESSING:
                return
            record.progress = message
            record.updated_at = self._clock()

        on_progress("starting generation")
        work_dir = (
            self._artifacts.get_operation_dir(operation_id) if self._artifacts else None
        )

        task = asyncio.create_task(self._executor.run(record.input, on_progress, work_dir))
        try:
            done, _ = await asyncio.wait({task}, timeout=self._config.operation_timeout)
        except asyncio.CancelledError:
            self._abandon(task)
            raise

        if task not in done:
            self._abandon(task)
            raise OperationTimeout(self._config.operation_timeout)

        if task.cancelled():
            raise ExecutorFailure("executor call was cancelled")
        result = task.result()
        if not result:
            raise ExecutorFailure("executor returned no result")
        return result

    def _abandon(self, task: asyncio.Task) -> None:
        task.cancel()
        self._abandoned.add(task)
        task.add_done_callback(self._on_abandoned_done)

    def _on_abandoned_done(self, task: asyncio.Task) -> None:
        self._abandoned.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Abandoned executor call ended with: %s", task.exception())

    # ------------------------------------------------------------------
    # Reaper
    # ------------------------------------------------------------------

    async def _reaper_loop(self) -> None:
        while True:
            await asyncio.sleep(self._config.cleanup_interval)
            try:
                self.reap()
            except Exception:
                logger.exception("Cleanup sweep failed")

    def reap(self) -> int:
        """Delete terminal records older than the retention window."""
        cutoff = self._clock() - timedelta(seconds=self._config.operation_ttl)
        expired = [
            op_id for op_id, r in self._operations.items()
            if r.status.is_terminal and r.updated_at < cutoff
        ]
        for op_id in expired:
            del self._operations[op_id]
            if self._artifacts is not None:
                self._artifacts.remove(op_id)
            logger.debug("Cleaned up old operation %s", op_id)

        if expired:
            logger.info("Cleaned up %d old operation(s)", len(expired))
        return len(expired)

    # ------------------------------------------------------------------
    # Record mutation helpers
    # ------------------------------------------------------------------

    def _transition(self, record: OperationRecord, target: OperationStatus) -> None:
        validate_transition(record.id, record.status, target)
        record.status = target
        record.updated_at = self._clock()

    def _fail(self, record: OperationRecord, reason: str) -> None:
        self._transition(record, OperationStatus.FAILED)
        record.error = reason
        record.completed_at = record.updated_at

    def _fail_pending(self, reason: str) -> None:
        for op_id in self._pending:
            record = self._operations.get(op_id)
            if record is not None:
                self._fail(record, reason)
        self._pending.clear()

    def _snapshot(self, record: OperationRecord) -> OperationSnapshot:
        position = None
        if record.status is OperationStatus.QUEUED:
            position = self._pending.index(record.id) + 1

        return OperationSnapshot(
            operation_id=record.id,
            status=record.status,
            position=position,
            queue_length=len(self._pending),
            progress=record.progress,
            created_at=record.created_at,
            updated_at=record.updated_at,
            started_at=record.started_at,
            completed_at=record.completed_at,
            result=record.result if record.status is OperationStatus.COMPLETED else None,
            error=record.error if record.status is OperationStatus.FAILED else None,
        )
