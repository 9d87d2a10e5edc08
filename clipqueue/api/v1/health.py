"""Health check and manual executor initialization endpoints."""

import platform
import sys

from fastapi import APIRouter, Depends

from clipqueue.api.deps import get_queue
from clipqueue.jobs.in_process_queue import OperationQueue

router = APIRouter()


@router.get("/health")
async def health_check(queue: OperationQueue = Depends(get_queue)):
    """Executor session state, queue load, and system info."""
    return {
        **(await queue.health()),
        "python_version": sys.version,
        "platform": platform.platform(),
    }


@router.post("/init")
async def initialize_executor(queue: OperationQueue = Depends(get_queue)):
    """Start (or retry) executor initialization without waiting for a request."""
    ready = await queue.ensure_ready(force=True)
    return {
        "success": ready,
        "message": "Executor initialized" if ready else "Failed to initialize",
    }
