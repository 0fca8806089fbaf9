from typing import Coroutine, TypeVar

from docfacade.core.utils import AsyncRunner

T = TypeVar("T")


def run_sync(coro: Coroutine[None, None, T], method_name: str) -> T:
    """Run ``coro`` to completion from synchronous code on the shared background loop.

    Raises:
        RuntimeError: If called while an event loop is running in this thread. Async callers must await the
            coroutine version of ``method_name`` instead.
    """
    if AsyncRunner.is_async_context():
        coro.close()
        raise RuntimeError(f"{method_name}_sync() called from async context. Use await {method_name}() instead.")
    return AsyncRunner.run_async(coro)
