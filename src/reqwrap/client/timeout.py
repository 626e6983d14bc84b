"""Deadline enforcement for a single transport call.

A :class:`TimedCall` races one awaitable against a deadline. It moves from
``PENDING`` to exactly one of ``COMPLETED`` (the call finished first) or
``TIMED_OUT`` (the deadline elapsed first, and the in-flight call was
cancelled). A timeout of ``0`` or ``None`` disables the deadline entirely.

Only the deadline is translated: expiry surfaces as
:class:`~reqwrap.exceptions.RequestTimeout`, while any error raised by the
call itself propagates unchanged -- including a transport's own
:class:`asyncio.TimeoutError`.
"""

from __future__ import annotations

import asyncio
import enum
from typing import Awaitable, Optional, TypeVar

from reqwrap.exceptions import RequestTimeout

T = TypeVar("T")


class CallState(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"


class TimedCall:
    """One-shot race between a transport call and a deadline.

    Args:
        timeout: Deadline in milliseconds. ``0`` or ``None`` disables it.

    Example::

        response = await TimedCall(2000).run(transport.send(url, options))
    """

    def __init__(self, timeout: Optional[float]) -> None:
        self.timeout = timeout
        self.state = CallState.PENDING

    async def run(self, call: Awaitable[T]) -> T:
        """Await *call*, cancelling it if the deadline elapses first.

        Raises:
            RequestTimeout: If the deadline elapsed before *call* finished.
            RuntimeError: If this instance has already been run.
        """
        if self.state is not CallState.PENDING:
            raise RuntimeError(f"TimedCall already {self.state.value}")

        if not self.timeout or self.timeout <= 0:
            try:
                return await call
            finally:
                self.state = CallState.COMPLETED

        task = asyncio.ensure_future(call)
        try:
            done, _ = await asyncio.wait({task}, timeout=self.timeout / 1000)
        except asyncio.CancelledError:
            # Cancelled from outside: take the in-flight call down with us.
            task.cancel()
            raise

        if task in done:
            self.state = CallState.COMPLETED
            return task.result()

        self.state = CallState.TIMED_OUT
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as exc:
            raise RequestTimeout(self.timeout) from exc
        raise RequestTimeout(self.timeout)


async def run_with_timeout(call: Awaitable[T], timeout: Optional[float]) -> T:
    """Await *call* under a deadline of *timeout* milliseconds."""
    return await TimedCall(timeout).run(call)
