"""Executor interface: the slow, stateful component the queue serializes."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from clipqueue.jobs.models import GenerationInput


# Type alias for progress callbacks: fn(message)
ProgressCallback = Callable[[str], None]


@dataclass
class ExecutorHealth:
    """State of the executor's backing resource (e.g. a browser session)."""
    authenticated: bool = False
    connected: bool = False


class Executor(ABC):
    """Abstract base class for artifact generators.

    The queue never calls run() concurrently, so implementations may keep
    a single mutable session. To plug one in:
    1. Subclass Executor and implement initialize(), run(), health()
    2. Point CLIPQUEUE_EXECUTOR_PATH at "package.module:ClassName"
    """

    @abstractmethod
    async def initialize(self) -> bool:
        """Bring the backing resource up. Returns whether it is usable."""
        ...

    @abstractmethod
    async def run(
        self,
        params: GenerationInput,
        progress_cb: ProgressCallback,
        work_dir: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Produce one artifact. Raises on failure; returns the result payload."""
        ...

    @abstractmethod
    async def health(self) -> ExecutorHealth:
        ...

    async def close(self) -> None:
        """Release the backing resource."""
        return None
