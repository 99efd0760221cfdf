"""
=============================================================================
ELASTIC THREAD POOL
=============================================================================

Runs connection handlers concurrently with each other and with the accept
loop.

=============================================================================
WHY NOT A FIXED-SIZE POOL?
=============================================================================

With a fixed pool of N threads, connection N+1 waits in the queue until one
of the first N finishes. If each handler is slow (large file, slow disk,
slow client), handling start times get spaced out by that delay:

    Fixed pool, N = 2, each request takes 1s:

        conn 1  ████████
        conn 2  ████████
        conn 3          ████████      ◄── waited 1s before starting
        conn 4          ████████

This server promises that every accepted connection begins handling right
away. So the pool never queues a task behind busy workers: if no idle
worker is available, it starts a new one.

    Elastic pool:

        conn 1  ████████
        conn 2  ████████
        conn 3  ████████              ◄── new worker started
        conn 4  ████████              ◄── new worker started

Workers above min_workers exit after idle_timeout seconds without work, so
a burst does not leave hundreds of threads parked forever.

=============================================================================
IDLE RESERVATION
=============================================================================

Checking "is any worker in state IDLE?" is racy: a worker can have taken a
task off the queue but not yet flipped to BUSY. Instead the pool keeps an
idle counter under a lock:

    submit():   idle > 0 ?  idle -= 1 (reserve one)  :  start a new worker
    worker:     after each task            →  idle += 1
    worker:     idle_timeout, above min    →  idle -= 1 and exit

Every queued task therefore has exactly one worker that will pick it up.

=============================================================================
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    """Worker thread states, used for monitoring."""
    IDLE = "idle"        # Waiting for a task
    BUSY = "busy"        # Executing a task
    STOPPED = "stopped"  # Thread exited


@dataclass
class Task:
    """
    A deferred function call: "call func(*args, **kwargs) later".

    Attributes:
        func: The function to execute.
        args: Positional arguments.
        kwargs: Keyword arguments.
        submitted_at: When the task was submitted (for queue-wait logging).
    """
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Worker thread that processes tasks from the shared queue.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Worker Loop                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. get() a task (wait up to idle_timeout)                          │
    │          ├── poison pill (None) → exit                               │
    │          ├── timeout, pool allows retiring → exit                    │
    │          └── task → step 2                                           │
    │                                                                      │
    │   2. Run it; log any exception (never crash the worker)             │
    │                                                                      │
    │   3. Tell the pool we are idle again, go to 1                        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(self, pool: "ThreadPool", worker_id: int):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.pool = pool
        self.worker_id = worker_id
        self.state = WorkerState.IDLE

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        try:
            while True:
                try:
                    task = self.pool._task_queue.get(timeout=self.pool.idle_timeout)
                except queue.Empty:
                    if self.pool._try_retire(self):
                        break
                    continue

                try:
                    if task is None:
                        break
                    self._execute_task(task)
                finally:
                    self.pool._task_queue.task_done()

                self.pool._mark_idle()
        finally:
            self.state = WorkerState.STOPPED
            logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        """
        Execute a single task.

        Exceptions are logged and counted. They never propagate: one failed
        connection must not take a worker (or the pool) down with it.
        """
        self.state = WorkerState.BUSY
        start_time = time.time()
        waited = start_time - task.submitted_at

        try:
            task.func(*task.args, **task.kwargs)
            logger.debug(
                f"Worker {self.worker_id} completed task in "
                f"{time.time() - start_time:.3f}s (queued {waited:.3f}s)"
            )
            self.tasks_completed += 1

        except Exception as e:
            logger.exception(
                f"Worker {self.worker_id} task failed after "
                f"{time.time() - start_time:.3f}s: {e}"
            )
            self.tasks_failed += 1

        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Elastic thread pool for per-connection tasks.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      ThreadPool Usage                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   pool = ThreadPool(min_workers=4)     # max_workers=None: no cap   │
    │   pool.start()                                                       │
    │   pool.submit(handle_connection, args=(conn,))                      │
    │   print(pool.stats)                                                  │
    │   pool.shutdown(wait=True)                                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    The task queue is unbounded and, with max_workers=None, so is the
    number of threads: submit() never blocks and never rejects.
    """

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: Optional[int] = None,
        idle_timeout: float = 60.0
    ):
        """
        Args:
            min_workers: Threads started by start() and never retired.
            max_workers: Hard cap on threads, or None for no cap. With a cap,
                         tasks beyond it wait in the queue.
            idle_timeout: Seconds an extra worker waits for work before exiting.
        """
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.idle_timeout = idle_timeout

        self._task_queue: queue.Queue[Optional[Task]] = queue.Queue()

        self._workers: list[Worker] = []
        self._lock = threading.Lock()  # Protects _workers and _idle
        self._idle = 0
        self._started = False
        self._shutdown = False
        self._next_worker_id = 0

    def start(self):
        """Start the pool with min_workers idle workers."""
        if self._started:
            return

        logger.info(f"Starting thread pool with {self.min_workers} workers")

        self._shutdown = False
        with self._lock:
            for _ in range(self.min_workers):
                self._add_worker()
                self._idle += 1

        self._started = True

    def _add_worker(self) -> Worker:
        """Start one more worker. Caller must hold _lock."""
        worker = Worker(pool=self, worker_id=self._next_worker_id)
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
    ) -> bool:
        """
        Submit a task for execution.

        Reserves an idle worker for the task, or starts a new one when none
        is idle (and max_workers allows it).

        Returns:
            True once the task is queued.

        Raises:
            RuntimeError: If the pool is not started or is shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")

        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(func=func, args=args, kwargs=kwargs or {})

        with self._lock:
            self._workers = [w for w in self._workers if w.is_alive()]
            if self._idle > 0:
                self._idle -= 1
            elif self.max_workers is None or len(self._workers) < self.max_workers:
                logger.debug(
                    f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers"
                )
                self._add_worker()
            else:
                logger.warning(
                    f"All {len(self._workers)} workers busy, task will wait in queue"
                )

        self._task_queue.put(task)
        return True

    def _mark_idle(self):
        with self._lock:
            self._idle += 1

    def _try_retire(self, worker: Worker) -> bool:
        """
        Called by a worker whose get() timed out.

        Only workers above min_workers retire, and only while the pool
        still counts them as idle (nobody has reserved them in between).
        """
        with self._lock:
            alive = sum(1 for w in self._workers if w.is_alive())
            if alive > self.min_workers and self._idle > 0 and worker in self._workers:
                self._idle -= 1
                self._workers.remove(worker)
                logger.debug(f"Worker {worker.worker_id} retiring after idle timeout")
                return True
            return False

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Shutdown the thread pool.

        1. Reject new tasks
        2. If wait: let queued tasks drain (bounded by timeout if given)
        3. Send one poison pill per worker
        4. Join workers

        Args:
            wait: Wait for queued tasks to complete first.
            timeout: Maximum seconds to wait for the queue to drain.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        if wait:
            if timeout:
                deadline = time.time() + timeout
                while self._task_queue.unfinished_tasks:
                    if time.time() > deadline:
                        logger.warning("Shutdown timeout, abandoning pending tasks")
                        break
                    time.sleep(0.05)
            else:
                self._task_queue.join()

        with self._lock:
            workers = list(self._workers)

        for _ in workers:
            self._task_queue.put(None)

        for worker in workers:
            worker.join(timeout=2.0)

        with self._lock:
            self._workers.clear()
            self._idle = 0
        self._started = False

        logger.info("Thread pool shutdown complete")

    @property
    def active_workers(self) -> int:
        """Count of live worker threads."""
        return sum(1 for w in self._workers if w.state != WorkerState.STOPPED)

    @property
    def stats(self) -> dict:
        """Worker and task counts, for logging and tests."""
        workers = list(self._workers)
        return {
            "workers": {
                "total": len(workers),
                "active": sum(1 for w in workers if w.state != WorkerState.STOPPED),
                "busy": sum(1 for w in workers if w.state == WorkerState.BUSY),
                "idle": self._idle,
            },
            "tasks": {
                "queued": self._task_queue.qsize(),
                "completed": sum(w.tasks_completed for w in workers),
                "failed": sum(w.tasks_failed for w in workers),
            },
        }
