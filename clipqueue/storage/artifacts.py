"""Per-operation artifact directories with TTL-based cleanup."""

import logging
import os
import shutil
import tempfile
import time
from typing import Optional

logger = logging.getLogger(__name__)


class ArtifactStore:
    """Manages files the executor writes for each operation (videos, screenshots)."""

    def __init__(self, base_dir: Optional[str] = None, ttl_seconds: float = 1800):
        if base_dir:
            self._base_dir = base_dir
        else:
            self._base_dir = os.path.join(tempfile.gettempdir(), "clipqueue_artifacts")
        os.makedirs(self._base_dir, exist_ok=True)
        self._ttl_seconds = ttl_seconds

    @property
    def base_dir(self) -> str:
        return self._base_dir

    def _operation_dir(self, operation_id: str) -> Optional[str]:
        """Resolved directory for an operation, or None if the id escapes the store."""
        root = os.path.realpath(self._base_dir)
        op_dir = os.path.realpath(os.path.join(root, operation_id))
        if os.path.dirname(op_dir) != root:
            return None
        return op_dir

    def get_operation_dir(self, operation_id: str) -> str:
        """Get or create the directory for an operation's output files."""
        op_dir = self._operation_dir(operation_id)
        if op_dir is None:
            raise ValueError(f"Invalid operation id: {operation_id!r}")
        os.makedirs(op_dir, exist_ok=True)
        return op_dir

    def get_output_path(self, operation_id: str, filename: str) -> Optional[str]:
        """Full path of an output file, or None if either name escapes its directory."""
        op_dir = self._operation_dir(operation_id)
        if op_dir is None:
            return None
        path = os.path.realpath(os.path.join(op_dir, filename))
        if os.path.dirname(path) != op_dir:
            return None
        return path

    def file_exists(self, operation_id: str, filename: str) -> bool:
        path = self.get_output_path(operation_id, filename)
        return path is not None and os.path.isfile(path)

    def remove(self, operation_id: str) -> bool:
        op_dir = self._operation_dir(operation_id)
        if op_dir is None or not os.path.isdir(op_dir):
            return False
        shutil.rmtree(op_dir, ignore_errors=True)
        return True

    def cleanup_expired(self) -> int:
        """Remove operation directories older than TTL. Returns count of removed dirs."""
        now = time.time()
        removed = 0
        if not os.path.exists(self._base_dir):
            return 0
        for entry in os.listdir(self._base_dir):
            op_dir = os.path.join(self._base_dir, entry)
            if not os.path.isdir(op_dir):
                continue
            if now - os.path.getmtime(op_dir) > self._ttl_seconds:
                shutil.rmtree(op_dir, ignore_errors=True)
                removed += 1
        if removed:
            logger.info("Removed %d expired artifact dir(s)", removed)
        return removed
