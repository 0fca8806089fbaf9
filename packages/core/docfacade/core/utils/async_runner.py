"""Run coroutines from synchronous code.

Motor clients are bound to the event loop they first run on. Every ``*_sync`` entry point therefore submits its
coroutine to one long-lived loop running in a daemon thread, instead of starting a fresh loop per call.

Example:
    ```python
    from docfacade.core.utils import AsyncRunner

    async def count_users(client):
        return len(await client.read_many(users))

    total = AsyncRunner.run_async(count_users(client))
    ```
"""

from __future__ import annotations

import asyncio
import atexit
import threading
from typing import Awaitable, TypeVar

T = TypeVar("T")

_shared_loop: asyncio.AbstractEventLoop | None = None
_shared_thread: threading.Thread | None = None
_shared_lock = threading.Lock()


def _loop_alive() -> bool:
    return _shared_loop is not None and _shared_loop.is_running()


def _get_shared_loop() -> asyncio.AbstractEventLoop:
    """Return the background loop, starting its thread on first use or after ``shutdown``."""
    global _shared_loop, _shared_thread

    if _loop_alive():
        return _shared_loop

    with _shared_lock:
        if _loop_alive():
            return _shared_loop

        loop = asyncio.new_event_loop()
        ready = threading.Event()

        def serve():
            asyncio.set_event_loop(loop)
            loop.call_soon(ready.set)
            loop.run_forever()

        thread = threading.Thread(target=serve, name="docfacade-async-runner", daemon=True)
        thread.start()
        ready.wait()
        _shared_loop, _shared_thread = loop, thread
        return loop


def _shutdown_shared_loop():
    global _shared_loop, _shared_thread

    with _shared_lock:
        loop, thread = _shared_loop, _shared_thread
        _shared_loop, _shared_thread = None, None

    if loop is not None and loop.is_running():
        loop.call_soon_threadsafe(loop.stop)
    if thread is not None:
        thread.join(timeout=1.0)


atexit.register(_shutdown_shared_loop)


class AsyncRunner:
    """Bridge from synchronous callers onto the shared background loop."""

    @staticmethod
    def is_async_context() -> bool:
        """Whether an event loop is running in the current thread."""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False
        return True

    @staticmethod
    def run_async(coro: Awaitable[T], timeout: float | None = None) -> T:
        """Block until ``coro`` finishes on the shared loop and return its result.

        Args:
            coro: Coroutine to run.
            timeout: Seconds to wait before giving up.

        Raises:
            TimeoutError: ``timeout`` elapsed. The coroutine is cancelled.
        """
        loop = _get_shared_loop()
        try:
            future = asyncio.run_coroutine_threadsafe(coro, loop)
        except Exception:
            coro.close()
            raise

        try:
            return future.result(timeout=timeout)
        except BaseException:
            future.cancel()
            raise

    @staticmethod
    def shutdown():
        """Stop the shared loop. The next ``run_async`` starts a new one."""
        _shutdown_shared_loop()
