"""Operation dispatcher interface."""

from abc import ABC, abstractmethod
from typing import Optional

from clipqueue.jobs.models import (
    EnqueueReceipt,
    GenerationInput,
    OperationSnapshot,
    QueueOverview,
)


class OperationDispatcher(ABC):
    """Abstract interface for queueing generation requests."""

    @abstractmethod
    async def enqueue(self, params: GenerationInput) -> EnqueueReceipt:
        """Admit a request. Returns immediately with its id and position."""
        ...

    @abstractmethod
    async def get_status(self, operation_id: str) -> Optional[OperationSnapshot]:
        """Get current status of an operation, or None if unknown."""
        ...

    @abstractmethod
    async def get_all_status(self, limit: int = 20) -> QueueOverview:
        ...

    @abstractmethod
    async def cancel(self, operation_id: str) -> None:
        """Cancel a queued operation."""
        ...

    @abstractmethod
    async def ensure_ready(self, force: bool = False) -> bool:
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start background work (e.g., the reaper)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the dispatcher gracefully."""
        ...
