"""Request-scoped access to the queue and artifact store wired in by main.py."""

from fastapi import HTTPException, Request

from clipqueue.jobs.in_process_queue import OperationQueue
from clipqueue.storage.artifacts import ArtifactStore


def get_queue(request: Request) -> OperationQueue:
    queue = getattr(request.app.state, "queue", None)
    if queue is None:
        raise HTTPException(status_code=503, detail="Operation queue not initialized")
    return queue


def get_artifacts(request: Request) -> ArtifactStore:
    store = getattr(request.app.state, "artifacts", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Artifact store not initialized")
    return store
