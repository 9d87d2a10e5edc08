"""
Status transition validation for operations.

Lifecycle: QUEUED -> PROCESSING -> COMPLETED | FAILED, or QUEUED -> FAILED
when cancelled (or when the executor never becomes ready). Terminal states
are immutable.
"""

from typing import Set, Tuple

from clipqueue.jobs.errors import InvalidOperationState
from clipqueue.jobs.models import OperationStatus


_TRANSITIONS: Set[Tuple[OperationStatus, OperationStatus]] = {
    (OperationStatus.QUEUED, OperationStatus.PROCESSING),
    (OperationStatus.QUEUED, OperationStatus.FAILED),
    (OperationStatus.PROCESSING, OperationStatus.COMPLETED),
    (OperationStatus.PROCESSING, OperationStatus.FAILED),
}


def can_transition(current: OperationStatus, target: OperationStatus) -> bool:
    return (current, target) in _TRANSITIONS


def validate_transition(
    operation_id: str, current: OperationStatus, target: OperationStatus
) -> None:
    """Raise InvalidOperationState if current -> target is not allowed."""
    if not can_transition(current, target):
        raise InvalidOperationState(
            operation_id, current.value, f"move to {target.value}"
        )
