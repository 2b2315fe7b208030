# byte_vision/utils/exec_common.py
from __future__ import annotations

import time

from byte_vision.exceptions import (
    ContextCancelled,
    DeadlineExceeded,
    ProcessExitError,
)

# ---- Time helpers ----------------------------------------------------------


def now_ms() -> int:
    """Wall-clock timestamp in milliseconds for latency measurement."""
    return int(time.time() * 1000)


# ---- Exceptions -> error_type mapping -------------------------------------


def map_exception_to_error_type(exc: BaseException) -> str:
    """Map process and context errors to a short category for logs and metrics."""
    if isinstance(exc, DeadlineExceeded):
        return "timeout"
    if isinstance(exc, ContextCancelled):
        return "cancelled"
    if isinstance(exc, FileNotFoundError):
        return "not_found"
    if isinstance(exc, PermissionError):
        return "permission_denied"
    if isinstance(exc, ProcessExitError):
        return "nonzero_exit"
    if isinstance(exc, OSError):
        return "os_error"
    return exc.__class__.__name__
