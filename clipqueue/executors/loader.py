"""Resolve the configured executor from an import path."""

import importlib
import inspect
import logging
from typing import Any, Dict, Optional

from clipqueue.executors.base import Executor, ExecutorHealth, ProgressCallback
from clipqueue.jobs.errors import ExecutorConfigError, ServiceUnavailable
from clipqueue.jobs.models import GenerationInput

logger = logging.getLogger(__name__)


class UnavailableExecutor(Executor):
    """Stand-in used when no executor is configured; never becomes ready."""

    async def initialize(self) -> bool:
        logger.warning("No executor configured (set CLIPQUEUE_EXECUTOR_PATH)")
        return False

    async def run(
        self,
        params: GenerationInput,
        progress_cb: ProgressCallback,
        work_dir: Optional[str] = None,
    ) -> Dict[str, Any]:
        raise ServiceUnavailable("no executor configured")

    async def health(self) -> ExecutorHealth:
        return ExecutorHealth()


def load_executor(path: str) -> Executor:
    """Instantiate the executor named by "package.module:attribute".

    The attribute may be an Executor subclass or a zero-argument factory
    returning an Executor. An empty path yields UnavailableExecutor.
    """
    if not path:
        return UnavailableExecutor()

    modname, sep, attr = path.partition(":")
    if not sep or not modname or not attr:
        raise ExecutorConfigError(
            f"Executor path must look like 'package.module:attribute', got {path!r}"
        )

    try:
        mod = importlib.import_module(modname)
    except ImportError as e:
        raise ExecutorConfigError(f"Failed to import {modname}: {e}") from e

    target = getattr(mod, attr, None)
    if target is None:
        raise ExecutorConfigError(f"{modname} has no attribute {attr!r}")

    if inspect.isclass(target) and not issubclass(target, Executor):
        raise ExecutorConfigError(f"{path} is not an Executor subclass")

    instance = target() if callable(target) else target
    if not isinstance(instance, Executor):
        raise ExecutorConfigError(f"{path} did not produce an Executor")

    logger.info("Loaded executor %s", path)
    return instance
