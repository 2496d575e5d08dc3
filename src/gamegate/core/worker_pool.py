"""
=============================================================================
WORKER POOL
=============================================================================

A fixed number of worker threads pulling connections off a bounded queue.

    accept loop ──► submit(handle, conn) ──► [ queue ] ──► Worker-1
                                                      └──► Worker-N

With the default of ONE worker every request is handled strictly in order,
which is what a game server with non-thread-safe state usually wants.
More workers allow overlap; the queue bound keeps a burst of clients from
piling up unbounded work (submit() returns False and the caller answers
503).

=============================================================================
STOPPING
=============================================================================

shutdown() never blocks on the queue. It raises a stop flag and offers one
None marker per worker where there is room:

    queue has room   worker takes the marker after the pending work, exits
    queue is full    worker drains the backlog, finds the queue empty with
                     the flag raised, exits

Either way every connection accepted before shutdown() is still answered.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any, List
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)

# How often an idle worker checks the stop flag (seconds)
POLL_INTERVAL = 0.2


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """A deferred call: ``func(*args)`` run by some worker."""

    func: Callable[..., Any]
    args: tuple = ()
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Runs tasks until it takes a None marker, or finds the queue empty once
    ``stopping`` is set.

    A task that raises is logged and counted; the worker keeps going.
    """

    def __init__(
        self,
        task_queue: "queue.Queue[Optional[Task]]",
        stopping: threading.Event,
        worker_id: int,
    ):
        super().__init__(name=f"gamegate-worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.stopping = stopping
        self.worker_id = worker_id
        self.state = WorkerState.IDLE
        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            try:
                task = self.task_queue.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                if self.stopping.is_set():
                    break
                continue

            if task is None:
                break
            self._execute(task)

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute(self, task: Task):
        self.state = WorkerState.BUSY
        started = time.time()

        try:
            task.func(*task.args)
            self.tasks_completed += 1
            logger.debug(
                f"Worker {self.worker_id} finished task in {time.time() - started:.3f}s "
                f"after {started - task.submitted_at:.3f}s in queue"
            )
        except Exception as e:
            self.tasks_failed += 1
            logger.exception(f"Worker {self.worker_id} task failed: {e}")
        finally:
            self.state = WorkerState.IDLE


class WorkerPool:
    """
    Fixed-size thread pool over a bounded queue.

    Usage:
        pool = WorkerPool(workers=1, queue_size=128)
        pool.start()
        if not pool.submit(handle_connection, conn):
            ...  # queue full, reject
        pool.shutdown()
    """

    def __init__(self, workers: int = 1, queue_size: int = 128):
        if workers < 1:
            raise ValueError("workers must be >= 1")

        self.workers = workers
        self.max_queued = queue_size
        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._stopping = threading.Event()
        self._workers: List[Worker] = []
        self._lock = threading.Lock()
        self._running = False

    def start(self):
        with self._lock:
            if self._running:
                return

            logger.info(f"Starting worker pool with {self.workers} worker(s)")

            # Fresh queue and flag: stragglers from a previous run keep theirs
            self._task_queue = queue.Queue(maxsize=self.max_queued)
            self._stopping = threading.Event()

            self._workers = [
                Worker(self._task_queue, self._stopping, worker_id)
                for worker_id in range(self.workers)
            ]
            for worker in self._workers:
                worker.start()
            self._running = True

    def submit(self, func: Callable[..., Any], *args: Any) -> bool:
        """
        Queue ``func(*args)`` without blocking.

        Returns:
            True if queued, False if the queue is full.

        Raises:
            RuntimeError: Pool not started, or shutting down.
        """
        if not self._running:
            raise RuntimeError("Worker pool is not running")

        try:
            self._task_queue.put_nowait(Task(func=func, args=args))
        except queue.Full:
            logger.warning("Worker pool queue full, rejecting task")
            return False
        return True

    def shutdown(self, timeout: Optional[float] = 5.0):
        """
        Stop accepting work and let the workers finish the backlog.

        Never blocks on a full queue. ``timeout`` bounds how long each worker
        is joined; a worker still busy after that is left to finish on its
        own (it is a daemon thread).
        """
        with self._lock:
            if not self._running:
                return

            logger.info("Shutting down worker pool...")
            self._running = False
            self._stopping.set()

            for _ in self._workers:
                try:
                    self._task_queue.put_nowait(None)
                except queue.Full:
                    logger.debug("Queue full, workers will stop once it drains")
                    break

            for worker in self._workers:
                worker.join(timeout=timeout)
                if worker.is_alive():
                    logger.warning(f"Worker {worker.worker_id} did not stop in time")

            self._workers = []
            logger.info("Worker pool shutdown complete")

    @property
    def queue_size(self) -> int:
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        return {
            "workers": len(self._workers),
            "busy": sum(1 for w in self._workers if w.state == WorkerState.BUSY),
            "queued": self.queue_size,
            "completed": sum(w.tasks_completed for w in self._workers),
            "failed": sum(w.tasks_failed for w in self._workers),
        }
