# byte_vision/schemas/execution.py
"""
Outcome types for a single llama-cli execution.

Exactly one variant describes how a run ended:

- Output:    the process exited with status 0; carries its full stdout.
- Failed:    the process could not be launched or exited non-zero.
- TimedOut:  the request deadline elapsed first.
- Cancelled: the request context was cancelled first (e.g. shutdown).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Output:
    stdout: bytes

    def text(self, encoding: str = "utf-8", errors: str = "replace") -> str:
        return self.stdout.decode(encoding, errors)


@dataclass(frozen=True)
class Failed:
    error: BaseException

    def __str__(self) -> str:
        return str(self.error)


@dataclass(frozen=True)
class TimedOut:
    pass


@dataclass(frozen=True)
class Cancelled:
    pass


ExecutionResult = Union[Output, Failed, TimedOut, Cancelled]
