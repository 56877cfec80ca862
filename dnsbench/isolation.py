"""
Isolated execution context for per-endpoint work.

A fixed pool of worker threads, each created with a dedicated stack
allowance and running its own event loop. Deep protocol call chains
(TLS, ASN.1, QUIC parsing) run here instead of on the dispatcher's
loop. The pool size is the concurrency bound for isolated work.
"""

import asyncio
import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Awaitable, Callable, Optional

from .config import WORKER_STACK_SIZE
from .errors import TaskFailure

logger = logging.getLogger(__name__)

# threading.stack_size() is process-wide; hold this while creating workers
_STACK_SIZE_LOCK = threading.Lock()

_STOP = object()


class IsolatedWorkerPool:
    """
    Bounded pool of stack-isolated asyncio workers.

    Usage::

        with IsolatedWorkerPool(workers=10) as pool:
            result = await pool.run(some_coroutine_function, arg)
    """

    def __init__(
        self,
        workers: int,
        stack_size: int = WORKER_STACK_SIZE,
        name: str = "dnsbench-worker",
    ):
        """
        Initialize the pool.

        Args:
            workers: Number of worker threads
            stack_size: Stack allowance per worker, in bytes
            name: Thread name prefix
        """
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.workers = workers
        self.stack_size = stack_size
        self.name = name
        self._queue: "queue.SimpleQueue[Any]" = queue.SimpleQueue()
        self._threads: list[threading.Thread] = []
        self._closed = False

    @property
    def started(self) -> bool:
        return bool(self._threads)

    def start(self) -> None:
        """Create the worker threads with the configured stack size."""
        if self._threads:
            return
        with _STACK_SIZE_LOCK:
            previous = threading.stack_size(self.stack_size)
            try:
                for i in range(self.workers):
                    thread = threading.Thread(
                        target=self._work,
                        name=f"{self.name}-{i}",
                        daemon=True,
                    )
                    thread.start()
                    self._threads.append(thread)
            finally:
                threading.stack_size(previous)
        logger.debug(
            "Started %d isolated workers (%d KiB stack)",
            self.workers, self.stack_size // 1024,
        )

    def _work(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            future, func, args = item
            if not future.set_running_or_notify_cancel():
                continue
            try:
                result = asyncio.run(func(*args))
            except Exception as e:
                future.set_exception(e)
            except BaseException as e:
                # The future must resolve even if the worker is going down
                future.set_exception(
                    TaskFailure(f"Isolated task aborted: {type(e).__name__}")
                )
                if isinstance(e, (KeyboardInterrupt, SystemExit)):
                    raise
                logger.warning("Isolated task aborted with %r", e)
            else:
                future.set_result(result)

    def submit(self, func: Callable[..., Awaitable[Any]], *args: Any) -> Future:
        """
        Queue a coroutine function to run on a worker's own event loop.

        Raises:
            TaskFailure: If the pool is shut down or could not start
        """
        if self._closed:
            raise TaskFailure("Worker pool is shut down")
        if not self._threads:
            try:
                self.start()
            except (RuntimeError, ValueError) as e:
                raise TaskFailure(f"Could not start isolated workers: {e}") from e

        future: Future = Future()
        self._queue.put((future, func, args))
        return future

    async def run(self, func: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        """Run a coroutine function in the pool and await its result."""
        return await asyncio.wrap_future(self.submit(func, *args))

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Stop the workers once queued work is done."""
        if self._closed:
            return
        self._closed = True
        for _ in self._threads:
            self._queue.put(_STOP)
        if wait:
            for thread in self._threads:
                thread.join(timeout)
        self._threads.clear()

    def __enter__(self) -> "IsolatedWorkerPool":
        # Workers start on first submit so start-up failures surface per task
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
