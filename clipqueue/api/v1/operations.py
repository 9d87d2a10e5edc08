"""Operation API: submit generation requests, poll status, cancel, download."""

import mimetypes

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse

from clipqueue.api.deps import get_artifacts, get_queue
from clipqueue.jobs.errors import (
    CapacityExceeded,
    InvalidOperationState,
    OperationNotFound,
    ServiceUnavailable,
)
from clipqueue.jobs.in_process_queue import OperationQueue
from clipqueue.jobs.models import GenerationInput, OperationStatus
from clipqueue.storage.artifacts import ArtifactStore

router = APIRouter()


@router.post("/operations")
async def submit_operation(
    request: GenerationInput,
    queue: OperationQueue = Depends(get_queue),
):
    """Queue a generation request. Returns immediately with an operation id."""
    try:
        receipt = await queue.enqueue(request)
    except CapacityExceeded as e:
        raise HTTPException(status_code=429, detail=str(e))
    except ServiceUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    return {
        "success": True,
        "queued": True,
        **receipt.model_dump(mode="json"),
        "message": (
            f"Request queued. Poll GET /api/v1/operations/{receipt.operation_id} "
            "for updates."
        ),
    }


@router.get("/operations")
async def get_queue_status(
    limit: int = Query(20, ge=1, le=100),
    queue: OperationQueue = Depends(get_queue),
):
    """Queue overview for monitoring: length, current operation, recent records."""
    overview = await queue.get_all_status(limit=limit)
    return {"success": True, **overview.model_dump(mode="json")}


@router.get("/operations/{operation_id}")
async def get_operation_status(
    operation_id: str,
    queue: OperationQueue = Depends(get_queue),
):
    """Get the current status of an operation, with its result once completed."""
    snapshot = await queue.get_status(operation_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Operation not found")

    response = {"success": True, **snapshot.model_dump(mode="json")}

    if snapshot.status == OperationStatus.COMPLETED and snapshot.result:
        # Prefer the locally served copy over the remote CDN link
        local_path = snapshot.result.get("local_path")
        if local_path:
            response["video_url"] = (
                f"/api/v1/operations/{operation_id}/artifacts/{local_path}"
            )
        else:
            response["video_url"] = snapshot.result.get("video_url")
        response["cdn_url"] = snapshot.result.get("video_url")

    return response


@router.delete("/operations/{operation_id}")
async def cancel_operation(
    operation_id: str,
    queue: OperationQueue = Depends(get_queue),
):
    """Cancel an operation that is still waiting in the queue."""
    try:
        await queue.cancel(operation_id)
    except OperationNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidOperationState as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {"success": True, "message": "Operation cancelled"}


@router.get("/operations/{operation_id}/artifacts/{filename}")
async def get_operation_artifact(
    operation_id: str,
    filename: str,
    queue: OperationQueue = Depends(get_queue),
    artifacts: ArtifactStore = Depends(get_artifacts),
):
    """Download a file (e.g., the generated video) written by the executor."""
    if await queue.get_status(operation_id) is None:
        raise HTTPException(status_code=404, detail="Operation not found")
    if not artifacts.file_exists(operation_id, filename):
        raise HTTPException(status_code=404, detail="Artifact not found")

    path = artifacts.get_output_path(operation_id, filename)
    media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return FileResponse(path, media_type=media_type, filename=filename)
