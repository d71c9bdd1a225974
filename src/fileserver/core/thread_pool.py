"""
=============================================================================
BOUNDED WORKER POOL
=============================================================================

By default the file server starts a fresh thread for every connection and
never says no. That is simple and isolates connections perfectly, but a
flood of slow clients means a flood of threads.

Setting ``max_workers`` swaps that for this pool:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ThreadPool                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   acceptor ──submit()──► [ task queue (queue_size) ]                │
    │                               │     │     │                         │
    │                               ▼     ▼     ▼                         │
    │                           Worker Worker Worker   (max_workers)      │
    │                                                                     │
    │   Queue full? submit() blocks, so the acceptor stops calling        │
    │   accept() and new clients wait in the kernel's listen backlog.     │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Each task is one connection; workers run them one at a time. A task that
raises is logged and the worker moves on to the next one.

Shutdown uses the "poison pill" pattern: one ``None`` per worker is queued
behind the real tasks, and a worker exits when it dequeues one.

=============================================================================
"""

import queue
import time
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Any, Optional


logger = logging.getLogger(__name__)


@dataclass
class Task:
    """
    A deferred function call: "call func(*args, **kwargs) later".

    Attributes:
        func: The function to execute.
        args: Positional arguments for the function.
        kwargs: Keyword arguments for the function.
        submitted_at: Time the task was queued (for queue-wait logging).
    """
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Worker thread that processes tasks from the queue until it receives a
    poison pill.
    """

    def __init__(self, task_queue: queue.Queue, worker_id: int):
        # daemon=True: a stuck client never keeps the process alive
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id

        # Metrics
        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        start_time = time.time()
        waited = start_time - task.submitted_at
        if waited > 1.0:
            logger.debug(f"Worker {self.worker_id} picked up task after {waited:.2f}s in queue")

        try:
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
        except Exception as e:
            # One bad connection must not take the worker down with it
            self.tasks_failed += 1
            logger.exception(f"Worker {self.worker_id} task failed: {e}")
        finally:
            elapsed = time.time() - start_time
            logger.debug(f"Worker {self.worker_id} finished task in {elapsed:.3f}s")


class ThreadPool:
    """
    Fixed-size thread pool with a bounded task queue.

    Usage:
        pool = ThreadPool(max_workers=8, queue_size=64)
        pool.start()
        pool.submit(handle_connection, args=(conn,))
        pool.shutdown(wait=True)
    """

    def __init__(self, max_workers: int = 4, queue_size: int = 64):
        """
        Args:
            max_workers: Number of worker threads, all created at start().
            queue_size: Maximum number of tasks waiting for a worker.
        """
        self.max_workers = max_workers
        self.queue_size = queue_size

        # Many producers and consumers; queue.Queue does its own locking
        self._task_queue: queue.Queue = queue.Queue(maxsize=queue_size)

        self._workers: list = []
        self._lock = threading.Lock()  # Protects start/shutdown transitions
        self._started = False
        self._shutdown = False

    def start(self):
        """Create and start all worker threads."""
        with self._lock:
            if self._started:
                return

            logger.info(f"Starting thread pool with {self.max_workers} workers")
            for worker_id in range(self.max_workers):
                worker = Worker(self._task_queue, worker_id)
                self._workers.append(worker)
                worker.start()

            self._started = True
            self._shutdown = False

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        block: bool = True,
        queue_timeout: Optional[float] = None,
    ) -> bool:
        """
        Queue a task for execution.

        Args:
            func: The function to execute.
            args: Positional arguments for the function.
            kwargs: Keyword arguments for the function.
            block: Wait for room if the queue is full.
            queue_timeout: How long to wait for room when blocking.

        Returns:
            True if the task was queued, False if the queue stayed full.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._started or self._shutdown:
            raise RuntimeError("Thread pool is not running")

        task = Task(func=func, args=args, kwargs=kwargs or {})
        try:
            self._task_queue.put(task, block=block, timeout=queue_timeout)
            return True
        except queue.Full:
            return False

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool.

        Args:
            wait: Let queued tasks finish before stopping workers.
            timeout: Upper bound in seconds on how long to wait for each
                     worker to exit.
        """
        with self._lock:
            if not self._started or self._shutdown:
                return
            self._shutdown = True

        logger.info("Shutting down thread pool...")

        if not wait:
            # Abandon whatever has not started yet
            while True:
                try:
                    self._task_queue.get_nowait()
                except queue.Empty:
                    break
                self._task_queue.task_done()

        # Pills queue behind any remaining tasks, so workers finish those first
        for _ in self._workers:
            try:
                self._task_queue.put(None, timeout=timeout)
            except queue.Full:
                logger.warning("Shutdown timeout, workers still busy")
                break

        for worker in self._workers:
            worker.join(timeout=timeout)

        stats = self.stats
        self._workers.clear()
        self._started = False
        logger.info(
            f"Thread pool shutdown complete: {stats['completed']} tasks completed, "
            f"{stats['failed']} failed"
        )

    @property
    def stats(self) -> dict:
        """Worker count and task totals, logged at shutdown."""
        return {
            "workers": len(self._workers),
            "completed": sum(w.tasks_completed for w in self._workers),
            "failed": sum(w.tasks_failed for w in self._workers),
        }
