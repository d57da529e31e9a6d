"""Bridge for driving the async save pipeline from synchronous callers."""

from __future__ import annotations

import asyncio
import threading
from queue import Queue
from typing import TYPE_CHECKING, Any, TypeVar

from persistx.exceptions import AsyncExecutionError, PackageError

if TYPE_CHECKING:
    from collections.abc import Coroutine

T = TypeVar("T")


def _run_in_worker_thread(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine on a fresh event loop owned by a worker thread.

    Used when the caller already sits inside a running loop, where
    `asyncio.run` is not allowed.

    Args:
        coro: The coroutine to run.

    Raises:
        PackageError: Re-raised unchanged when the coroutine raises one.
        AsyncExecutionError: If the coroutine raises anything else.

    Returns:
        The coroutine result.
    """
    outcome: Queue[T | BaseException] = Queue(maxsize=1)

    def _worker() -> None:
        try:
            outcome.put(asyncio.run(coro))
        except BaseException as exc:
            outcome.put(exc)

    worker = threading.Thread(target=_worker, name="persistx-run-async", daemon=True)
    worker.start()
    worker.join()

    result = outcome.get()
    if isinstance(result, PackageError):
        raise result
    if isinstance(result, BaseException):
        raise AsyncExecutionError(result=result) from result
    return result


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion and return its result.

    Without a running loop the coroutine runs through `asyncio.run`, so its
    exceptions propagate unchanged. Inside a running loop it runs on a worker
    thread; package errors still propagate unchanged and any other failure is
    wrapped in `AsyncExecutionError`.

    Args:
        coro: The coroutine to run.

    Returns:
        The coroutine result.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    return _run_in_worker_thread(coro)
