"""Background task execution with results delivered on the owning thread."""

from __future__ import annotations

import queue
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

Callback = Callable[[Any], None]
ErrorHandler = Callable[[Exception], None]


class TaskPool:
    """Run work on worker threads and queue callbacks for the owning thread.

    Callbacks and error handlers are not run on the worker thread; they wait
    until the owner calls :meth:`process_pending`, much like an event loop
    draining its queue.
    """

    def __init__(self, max_workers: Optional[int] = None) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers)
        self._pending: queue.SimpleQueue[Callable[[], None]] = queue.SimpleQueue()

    def submit(
        self,
        work: Callable[[], Any],
        callback: Optional[Callback] = None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> Future:
        """Run *work* in the pool.

        On success *callback* is queued with the result; on failure
        *error_handler* is queued with the exception. The returned future
        also carries the result or the exception.
        """

        def run() -> Any:
            try:
                result = work()
            except Exception as exc:
                if error_handler is not None:
                    self._pending.put(lambda: error_handler(exc))
                raise
            if callback is not None:
                self._pending.put(lambda: callback(result))
            return result

        return self._executor.submit(run)

    def process_pending(self) -> int:
        """Run every queued callback on the calling thread; return how many ran."""
        count = 0
        while True:
            try:
                job = self._pending.get_nowait()
            except queue.Empty:
                return count
            job()
            count += 1

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work, optionally waiting for running tasks."""
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "TaskPool":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown(wait=True)