"""
=============================================================================
THREAD POOL
=============================================================================

Runs one connection per worker thread.

A keep-alive connection holds its worker for as long as the client keeps
it open, so the pool grows on demand: whenever a task is queued and no
idle worker is left to take it, another worker is started. With
max_workers=None there is no ceiling and every open connection gets a
thread of its own; with a ceiling, tasks past it wait in the queue until
a connection closes.

    ┌──────────────┐  submit(task)   ┌─────────┐   get()   ┌──────────┐
    │ SocketServer │ ──────────────► │  queue  │ ────────► │ Worker-0 │
    │ accept loop  │                 │         │ ────────► │ Worker-1 │
    └──────────────┘                 └─────────┘ ────────► │   ...    │
                                          ▲                └──────────┘
                                          │ None = poison pill (shutdown)

Exceptions raised by a task are logged and dropped inside the worker:
one connection's failure never takes a worker, or another connection,
down with it.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Any, Optional


logger = logging.getLogger(__name__)


class Worker(threading.Thread):
    """Worker thread: take a task, run it, repeat until a poison pill."""

    def __init__(self, pool: "ThreadPool", worker_id: int):
        super().__init__(name=f"{pool.name}-worker-{worker_id}", daemon=True)
        self.pool = pool
        self.worker_id = worker_id
        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")
        while True:
            task = self.pool._task_queue.get()
            if task is None:
                self.pool._task_queue.task_done()
                break

            self.pool._mark_busy()
            try:
                self._execute(*task)
            finally:
                self.pool._mark_idle()
                self.pool._task_queue.task_done()
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute(self, func: Callable[..., Any], args: tuple):
        start_time = time.time()
        try:
            func(*args)
            self.tasks_completed += 1
        except Exception as e:
            elapsed = time.time() - start_time
            logger.exception(
                f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}"
            )
            self.tasks_failed += 1


class ThreadPool:
    """
    Growing pool of worker threads.

        pool = ThreadPool(min_workers=4)        # grows without a ceiling
        pool.start()
        pool.submit(process_connection, conn)
        pool.shutdown()
    """

    def __init__(self, min_workers: int = 4, max_workers: Optional[int] = None,
                 name: str = "minihttpd"):
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.name = name

        self._task_queue: "queue.Queue[Optional[tuple]]" = queue.Queue()
        self._workers: list[Worker] = []
        self._lock = threading.Lock()  # Guards the counters and _workers
        self._idle = 0
        self._pending = 0
        self._started = False
        self._shutdown = False

    def start(self):
        if self._started:
            return
        logger.info(f"Starting thread pool with {self.min_workers} workers")
        with self._lock:
            for _ in range(self.min_workers):
                self._add_worker()
        self._started = True

    def _add_worker(self):
        """Start one more worker. Caller holds the lock."""
        worker = Worker(self, len(self._workers))
        self._workers.append(worker)
        self._idle += 1
        worker.start()

    def submit(self, func: Callable[..., Any], *args: Any):
        """
        Queue `func(*args)` for execution.

        Raises:
            RuntimeError: The pool is not started or is shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        with self._lock:
            self._pending += 1
            if self._idle < self._pending and self._can_grow():
                logger.debug(
                    f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers"
                )
                self._add_worker()
        self._task_queue.put((func, args))

    def _can_grow(self) -> bool:
        """Caller holds the lock."""
        return self.max_workers is None or len(self._workers) < self.max_workers

    def _mark_busy(self):
        with self._lock:
            self._pending -= 1
            self._idle -= 1

    def _mark_idle(self):
        with self._lock:
            self._idle += 1

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool.

        Args:
            wait: Join the workers after sending the poison pills.
            timeout: Overall time to wait for the workers. Workers still
                     serving a connection past it are left to finish as
                     daemons.
        """
        if not self._started or self._shutdown:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        with self._lock:
            workers = list(self._workers)
        for _ in workers:
            self._task_queue.put(None)

        if wait:
            deadline = None if timeout is None else time.monotonic() + timeout
            for worker in workers:
                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
                worker.join(timeout=remaining)

        logger.info("Thread pool shutdown complete")

    @property
    def size(self) -> int:
        return len(self._workers)

    @property
    def stats(self) -> dict:
        with self._lock:
            workers = list(self._workers)
            idle = self._idle
        return {
            "workers": {
                "total": len(workers),
                "idle": idle,
                "busy": len(workers) - idle,
            },
            "tasks": {
                "queued": self._task_queue.qsize(),
                "completed": sum(w.tasks_completed for w in workers),
                "failed": sum(w.tasks_failed for w in workers),
            },
        }
