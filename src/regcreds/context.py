"""Caller-controlled cancellation, deadlines, and helper tracing.

Every store operation accepts an optional :class:`Context`.  Operations
call :meth:`Context.check` before doing any work, so a cancelled or expired
context fails fast without touching the config file or spawning a helper.
:class:`~regcreds.executer.HelperExecuter` additionally polls the context
while a helper process runs and kills it on cancellation.

A context can also carry an :class:`ExecutableTrace` whose hooks fire
around each helper invocation, which is handy for debugging which helper a
:class:`~regcreds.stores.DynamicStore` picked.

Example::

    ctx = Context(timeout=5)
    cred = store.get("registry.example.com", ctx)
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from regcreds.exceptions import OperationCancelledError


@dataclass(frozen=True)
class ExecutableTrace:
    """Hooks invoked around every credential-helper execution.

    Attributes:
        execute_start: Called with ``(executable, action)`` right before the
            helper process is started.
        execute_done: Called with ``(executable, action, error)`` after it
            finishes; ``error`` is ``None`` on success.
    """

    execute_start: Optional[Callable[[str, str], None]] = None
    execute_done: Optional[Callable[[str, str, Optional[Exception]], None]] = None


class Context:
    """Cancellation state shared between a caller and the stores it calls.

    Args:
        timeout: Seconds from now after which the context counts as
            cancelled.  ``None`` means no deadline.
        trace: Optional hooks for helper executions.
    """

    def __init__(self, timeout: Optional[float] = None, trace: Optional[ExecutableTrace] = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._reason = "context cancelled"
        self.trace = trace

    @property
    def deadline(self) -> Optional[float]:
        """The ``time.monotonic()`` value at which the context expires."""
        return self._deadline

    @property
    def cancelled(self) -> bool:
        """True once :meth:`cancel` was called or the deadline has passed."""
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._reason = "context deadline exceeded"
            return True
        return False

    def cancel(self) -> None:
        """Cancel the context.  Idempotent."""
        self._event.set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or ``None`` without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """Raise :class:`OperationCancelledError` if the context is done."""
        if self.cancelled:
            raise OperationCancelledError(self._reason)

    def with_trace(self, trace: ExecutableTrace) -> Context:
        """Return a child context carrying *trace* and sharing cancellation."""
        child = Context.__new__(Context)
        child._event = self._event
        child._deadline = self._deadline
        child._reason = self._reason
        child.trace = trace
        return child


def check(ctx: Optional[Context]) -> None:
    """Call :meth:`Context.check` when a context was supplied."""
    if ctx is not None:
        ctx.check()
