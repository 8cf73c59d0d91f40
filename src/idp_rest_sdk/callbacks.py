"""Callback-or-awaitable calling convention.

Every public operation of the SDK is written once as a coroutine. The
``supports_callback`` decorator settles that coroutine into an ``Outcome``
and hands it to exactly one of two adapters:

* no callback: the caller gets an awaitable that returns the value or raises
  the error;
* ``callback=fn``: a task is scheduled on the running loop and
  ``fn(error, value)`` is invoked once with the settled outcome. The task
  itself always completes with ``None`` so the error is reported only once.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from typing import Any, Generic, ParamSpec, TypeVar

from .telemetry import get_logger
from .types import Callback

P = ParamSpec("P")
T = TypeVar("T")

# the event loop only keeps weak references to tasks
_pending_tasks: set[asyncio.Task[None]] = set()


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """Settled result of an operation: a value or an error, never both."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


async def settle(awaitable: Awaitable[T]) -> Outcome[T]:
    """Await and capture the result. Cancellation is not captured."""
    try:
        return Outcome(value=await awaitable)
    except Exception as exc:
        return Outcome(error=exc)


async def _as_awaitable(awaitable: Awaitable[T]) -> T:
    outcome = await settle(awaitable)
    return outcome.unwrap()


async def _notify(awaitable: Awaitable[T], callback: Callback) -> None:
    outcome = await settle(awaitable)
    try:
        callback(outcome.error, outcome.value)
    except Exception:
        get_logger().exception("Callback raised", callback=getattr(callback, "__name__", repr(callback)))


def dispatch(
    awaitable: Awaitable[T],
    callback: Callback | None = None,
) -> Coroutine[Any, Any, T] | asyncio.Task[None]:
    """Report ``awaitable`` through the callback if given, else return an awaitable.

    Raises:
        TypeError: If ``callback`` is not callable.
        RuntimeError: If a callback is given outside a running event loop.
    """
    if callback is None:
        return _as_awaitable(awaitable)
    if not callable(callback):
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        msg = "callback must be callable"
        raise TypeError(msg)
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise
    task = loop.create_task(_notify(awaitable, callback))
    _pending_tasks.add(task)
    task.add_done_callback(_pending_tasks.discard)
    return task


def supports_callback(
    func: Callable[P, Awaitable[T]],
) -> Callable[..., Coroutine[Any, Any, T] | asyncio.Task[None]]:
    """Give a coroutine method an optional keyword-only ``callback`` argument."""

    @functools.wraps(func)
    def wrapper(*args: Any, callback: Callback | None = None, **kwargs: Any) -> Any:
        return dispatch(func(*args, **kwargs), callback)

    return wrapper
