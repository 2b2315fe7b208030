# byte_vision/utils/context.py
"""
Cancellable request contexts for asyncio code.

A RequestContext carries an optional deadline and an explicit cancellation
signal. Contexts form a tree: cancelling a parent cancels every live child,
and a child's deadline is never later than its parent's. The server keeps one
root context for its whole lifetime and derives a timed child per request, so
shutting down the root ends every in-flight completion as "cancelled" while a
request's own deadline ends it as "timed out".

Contexts are bound to the event loop thread; `cancel()` must be called from
that thread.
"""
from __future__ import annotations

import asyncio
import time
import weakref
from typing import Optional

from byte_vision.exceptions import ContextCancelled, ContextError, DeadlineExceeded


class RequestContext:
    """A deadline plus a cancellation signal, observable from coroutines."""

    def __init__(
        self,
        *,
        deadline: Optional[float] = None,
        parent: Optional["RequestContext"] = None,
    ):
        """
        :param deadline: Absolute deadline on the `time.monotonic()` clock.
        :type deadline: Optional[float]
        :param parent: Context whose cancellation and deadline this one inherits.
        :type parent: Optional[RequestContext]
        """
        if parent is not None and parent.deadline is not None:
            deadline = (
                parent.deadline if deadline is None else min(deadline, parent.deadline)
            )
        self._deadline = deadline
        self._parent = parent
        self._err: Optional[ContextError] = None
        self._event = asyncio.Event()
        self._children: "weakref.WeakSet[RequestContext]" = weakref.WeakSet()

        if parent is not None:
            if parent.err is not None:
                self._finish(parent.err)
            else:
                parent._children.add(self)

    # ----- Derivation -----

    def with_timeout(self, seconds: float) -> "RequestContext":
        """Derive a child context that expires `seconds` from now."""
        return RequestContext(deadline=time.monotonic() + seconds, parent=self)

    def child(self) -> "RequestContext":
        """Derive a child context that only inherits this one's signals."""
        return RequestContext(parent=self)

    # ----- State -----

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    @property
    def err(self) -> Optional[ContextError]:
        """Why the context is done, or None while it is still live."""
        if self._err is None and self._deadline is not None:
            if time.monotonic() >= self._deadline:
                self._finish(DeadlineExceeded())
        return self._err

    @property
    def done(self) -> bool:
        return self.err is not None

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline (never negative), or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    # ----- Signalling -----

    def cancel(self) -> None:
        """Cancel this context and all of its descendants. Idempotent."""
        if self._err is None:
            self._finish(ContextCancelled())

    def _finish(self, err: ContextError) -> None:
        self._err = err
        self._event.set()
        for child in list(self._children):
            if child._err is None:
                child._finish(err)
        self._children.clear()
        if self._parent is not None:
            self._parent._children.discard(self)

    async def wait(self) -> ContextError:
        """Suspend until the context is done and return the reason."""
        while True:
            err = self.err
            if err is not None:
                return err
            try:
                await asyncio.wait_for(self._event.wait(), timeout=self.remaining())
            except asyncio.TimeoutError:
                # Loop back so `err` records the deadline.
                pass

    # ----- Scoped use -----

    def __enter__(self) -> "RequestContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()

    def __repr__(self) -> str:
        state = type(self._err).__name__ if self._err is not None else "live"
        return f"RequestContext(deadline={self._deadline!r}, state={state})"
