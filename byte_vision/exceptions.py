# byte_vision/exceptions.py
"""
Defines custom exception classes for the Byte Vision MCP server.

Using custom exceptions allows for precise classification of the ways a
completion request can end: a configuration problem caught at startup, a
failure of the external llama-cli process, or the request context running out
of time or being cancelled during shutdown.
"""
from typing import Optional


class ByteVisionError(Exception):
    """Base exception class for all custom errors in the application."""

    pass


class ConfigurationError(ByteVisionError):
    """Raised when the server configuration cannot be used.

    This includes an env file that exists but cannot be read, or a missing
    llama-cli executable path at serve time.
    """

    pass


class ExecutionError(ByteVisionError):
    """Raised when the external program cannot be run to a successful exit."""

    pass


class ProcessExitError(ExecutionError):
    """The external program ran but exited with a non-zero status.

    The captured standard error is kept on the exception for logging; it is
    never merged into the completion output.
    """

    def __init__(self, returncode: int, stderr: Optional[bytes] = None):
        self.returncode = returncode
        self.stderr = stderr or b""
        super().__init__(f"exit status {returncode}")

    def stderr_tail(self, limit: int = 500) -> str:
        text = self.stderr.decode("utf-8", errors="replace").strip()
        return text[-limit:]


class ContextError(ByteVisionError):
    """Base class for the reasons a RequestContext becomes done."""

    pass


class DeadlineExceeded(ContextError):
    """The context deadline elapsed before the work completed."""

    def __init__(self, message: str = "context deadline exceeded"):
        super().__init__(message)


class ContextCancelled(ContextError):
    """The context was cancelled explicitly, typically during shutdown."""

    def __init__(self, message: str = "context canceled"):
        super().__init__(message)
