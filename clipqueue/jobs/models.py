"""Operation record data model for async processing."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OperationStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (OperationStatus.COMPLETED, OperationStatus.FAILED)


class GenerationInput(BaseModel):
    """Parameters forwarded untouched to the executor."""
    image_url: str = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1)
    aspect_ratio: Literal["portrait", "landscape", "square"] = "portrait"
    duration: str = "5"
    options: Dict[str, Any] = Field(default_factory=dict)


class OperationRecord(BaseModel):
    """Tracks the lifecycle of one queued generation request."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    status: OperationStatus = OperationStatus.QUEUED
    input: GenerationInput
    progress: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class EnqueueReceipt(BaseModel):
    operation_id: str
    status: OperationStatus
    position: int
    queue_length: int


class OperationSnapshot(BaseModel):
    """Read-only view of a record as returned to pollers."""
    operation_id: str
    status: OperationStatus
    position: Optional[int] = None
    queue_length: int
    progress: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class OperationSummary(BaseModel):
    operation_id: str
    status: OperationStatus
    created_at: datetime
    updated_at: datetime


class QueueOverview(BaseModel):
    queue_length: int
    processing: bool
    current_operation_id: Optional[str] = None
    service_ready: bool
    initializing: bool
    operations: List[OperationSummary] = Field(default_factory=list)
