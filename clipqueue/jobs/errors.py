"""
Queue error types.

All errors inherit from QueueError for easy catching. Admission and
cancellation errors are raised to the caller; executor failures and
timeouts are only ever recorded on the operation.
"""


class QueueError(Exception):
    """Base exception for all queue-related failures."""
    pass


class CapacityExceeded(QueueError):
    """Raised when admission is refused because the queue is full."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(
            f"Queue is full. Maximum {limit} pending operations allowed."
        )


class OperationNotFound(QueueError):
    """Raised when an operation id is unknown (never existed or reaped)."""

    def __init__(self, operation_id: str):
        self.operation_id = operation_id
        super().__init__(f"Operation not found: {operation_id}")


class InvalidOperationState(QueueError):
    """Raised when an operation is not in a state that allows the request."""

    def __init__(self, operation_id: str, current_state: str, action: str):
        self.operation_id = operation_id
        self.current_state = current_state
        self.action = action
        super().__init__(
            f"Cannot {action} operation {operation_id} in {current_state} status"
        )


class ExecutorFailure(QueueError):
    """The executor reported an error; its message is passed through."""
    pass


class OperationTimeout(QueueError):
    """The executor did not finish within the operation deadline."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Operation timed out after {timeout_seconds:g}s")


class ServiceUnavailable(QueueError):
    """The executor's backing resource could not be made ready."""

    def __init__(self, reason: str = "service unavailable"):
        self.reason = reason
        super().__init__(reason)


class ExecutorConfigError(QueueError):
    """Raised when the configured executor cannot be loaded."""
    pass
