"""
=============================================================================
THREAD POOL IMPLEMENTATION
=============================================================================

A fixed number of long-lived worker threads share ONE job queue. The
server's accept loop is the single producer; the workers are the
consumers.

=============================================================================
THREAD POOL ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Thread Pool                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   submit(job) ──► JobQueue (unbounded FIFO, sending side)           │
    │                      │                                               │
    │                      │ recv()  ◄── guarded by ONE receiver lock      │
    │                      ▼                                               │
    │   ┌──────────┐ ┌──────────┐ ┌──────────┐ ┌──────────┐              │
    │   │ Worker 0 │ │ Worker 1 │ │ Worker 2 │ │ Worker 3 │              │
    │   │ (idle)   │ │ (busy)   │ │ (busy)   │ │ (idle)   │              │
    │   └──────────┘ └──────────┘ └──────────┘ └──────────┘              │
    │                                                                      │
    │   • The lock is held ONLY across recv()                             │
    │   • The job runs after the lock is released                         │
    │   • Workers therefore execute jobs in parallel                      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WORKER LIFECYCLE
=============================================================================

    Idle ──► waiting on lock ──► holding lock, recv() ──┬──► executing ──► Idle
                                                        │
                                                        └──► (closed) Terminated

    The "poison pill" pattern:
    ─────────────────────────

    Closing the queue puts a single sentinel at its tail. Every job that
    was accepted before the close is still delivered first. The worker
    that receives the sentinel puts it back so the next worker sees it
    too, so one close() stops every worker.

        pool.shutdown()
            └─ queue.close()            (sentinel enqueued once)
            └─ worker 0 .. N-1 join()   (in creation order)

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)


class QueueClosedError(RuntimeError):
    """Raised when a job is sent on a queue that has already been closed."""


class WorkerState(Enum):
    """
    Worker thread states.

    Used for monitoring and debugging the thread pool.
    """
    IDLE = "idle"      # Waiting for a job
    BUSY = "busy"      # Executing a job
    STOPPED = "stopped"  # Thread exited


@dataclass
class Job:
    """
    A one-shot unit of work: "call this function with these arguments later".

    Attributes:
        func: The function to execute.
        args: Positional arguments for the function.
        kwargs: Keyword arguments for the function.
        submitted_at: Time the job was submitted (for queue wait logging).
    """
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)

    def __call__(self) -> Any:
        return self.func(*self.args, **self.kwargs)


# Marks the end of the stream. Never handed to a worker as a job.
_CLOSED = object()


class JobQueue:
    """
    Unbounded FIFO channel between the pool (sender) and its workers.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        JobQueue Contract                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   send(job)   Enqueue; never blocks. Raises after close().          │
    │   recv()      Block until a job arrives. Returns None once the      │
    │               queue is closed and every earlier job was taken.      │
    │   close()     Idempotent. Jobs already sent are still delivered.    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Exclusive access to the receiving side is the caller's job: the pool
    hands every worker the same lock to hold across recv().
    """

    def __init__(self):
        # maxsize=0 -> unbounded, put() never blocks
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._send_lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, job: Job) -> None:
        with self._send_lock:
            if self._closed:
                raise QueueClosedError("send on a closed job queue")
            self._queue.put(job)

    def recv(self) -> Optional[Job]:
        item = self._queue.get()
        if item is _CLOSED:
            # Put the sentinel back for the next receiver
            self._queue.put(_CLOSED)
            return None
        return item

    def close(self) -> None:
        with self._send_lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_CLOSED)

    def qsize(self) -> int:
        """Approximate number of jobs waiting (the sentinel excluded)."""
        size = self._queue.qsize()
        return max(size - 1, 0) if self._closed else size


class Worker(threading.Thread):
    """
    Worker thread that processes jobs from the shared queue.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Worker Loop                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. Acquire the receiver lock                                      │
    │   2. recv() a job (blocking)                                        │
    │   3. Release the receiver lock                                      │
    │          │                                                           │
    │          ├── None (queue closed) → exit loop, thread terminates     │
    │          │                                                           │
    │          └── Job → execute it, log any exception, back to step 1    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(
        self,
        worker_id: int,
        jobs: JobQueue,
        receiver_lock: threading.Lock,
    ):
        """
        Initialize the worker.

        Args:
            worker_id: Identifier in [0, N) (for logging).
            jobs: The queue shared by every worker of the pool.
            receiver_lock: Lock held by a worker while it calls recv().
        """
        # daemon=True: a crashed main thread does not hang on workers.
        # Normal shutdown joins them explicitly.
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.worker_id = worker_id
        self.jobs = jobs
        self.receiver_lock = receiver_lock

        self.state = WorkerState.IDLE

        # Metrics
        self.jobs_completed = 0
        self.jobs_failed = 0

    def run(self):
        """Main worker loop. Runs until the job queue is closed."""
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            # ─────────────────────────────────────────────────────────────
            # WAIT FOR A JOB
            # ─────────────────────────────────────────────────────────────
            # The lock covers recv() only. Leaving the with-block before
            # running the job keeps the other workers free to receive.

            with self.receiver_lock:
                job = self.jobs.recv()

            if job is None:
                logger.debug(f"Worker {self.worker_id} is shutting down")
                break

            self._execute_job(job)

        self.state = WorkerState.STOPPED

    def _execute_job(self, job: Job):
        """
        Execute a single job.

        A failing job is logged and counted; the worker itself keeps
        running and goes back to IDLE.
        """
        self.state = WorkerState.BUSY
        start_time = time.time()
        logger.debug(
            f"Worker {self.worker_id} got a job "
            f"(queued {start_time - job.submitted_at:.3f}s); executing"
        )

        try:
            job()
            elapsed = time.time() - start_time
            logger.debug(f"Worker {self.worker_id} completed job in {elapsed:.3f}s")
            self.jobs_completed += 1

        except Exception as e:
            elapsed = time.time() - start_time
            logger.exception(
                f"Worker {self.worker_id} job failed after {elapsed:.3f}s: {e}"
            )
            self.jobs_failed += 1

        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Fixed-size thread pool.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      ThreadPool Usage                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   # Create pool (workers start immediately)                          │
    │   pool = ThreadPool(4)                                               │
    │                                                                      │
    │   # Submit jobs                                                      │
    │   pool.submit(handle_connection, args=(conn,))                      │
    │   pool.submit(lambda: print("hello"))                               │
    │                                                                      │
    │   # Shutdown (runs every queued job, then joins workers)            │
    │   pool.shutdown()                                                    │
    │                                                                      │
    │   # Or scope it                                                      │
    │   with ThreadPool(4) as pool:                                        │
    │       pool.submit(...)                                               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    There is no bound on the queue and no backpressure: submit() always
    returns immediately while the pool is alive.
    """

    def __init__(self, size: int = 4):
        """
        Create the queue and spawn `size` workers.

        Args:
            size: Number of worker threads. Must be >= 1.

        Raises:
            ValueError: If size is not a positive integer.
        """
        if not isinstance(size, int) or isinstance(size, bool) or size < 1:
            raise ValueError(f"Thread pool size must be a positive integer, got {size!r}")

        self._jobs = JobQueue()
        self._receiver_lock = threading.Lock()
        self._shutdown = False
        self._shutdown_lock = threading.Lock()

        logger.info(f"Starting thread pool with {size} workers")

        self._workers: list[Worker] = []
        for worker_id in range(size):
            worker = Worker(worker_id, self._jobs, self._receiver_lock)
            self._workers.append(worker)
            worker.start()

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
    ) -> None:
        """
        Submit a job for execution.

        Args:
            func: The function to execute.
            args: Positional arguments for the function.
            kwargs: Keyword arguments for the function.

        Raises:
            RuntimeError: If the pool is shutting down.
        """
        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        self._jobs.send(Job(func=func, args=args, kwargs=kwargs or {}))

    def shutdown(self):
        """
        Shut the pool down.

        ┌─────────────────────────────────────────────────────────────────┐
        │                    shutdown() Flow                               │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   1. Reject new jobs                                            │
        │   2. Close the queue (jobs already queued still run)            │
        │   3. Join every worker, in creation order                       │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘

        Safe to call more than once.
        """
        with self._shutdown_lock:
            if self._shutdown:
                return
            self._shutdown = True

        logger.info("Shutting down thread pool...")
        self._jobs.close()

        for worker in self._workers:
            logger.info(f"Shutting down worker {worker.worker_id}")
            worker.join()

        logger.info("Thread pool shutdown complete")

    def __enter__(self) -> "ThreadPool":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
        return False

    # =========================================================================
    # MONITORING: Check pool status
    # =========================================================================

    @property
    def size(self) -> int:
        """Number of workers the pool was built with."""
        return len(self._workers)

    @property
    def workers(self) -> tuple:
        return tuple(self._workers)

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    @property
    def active_workers(self) -> int:
        """Get count of live worker threads."""
        return sum(1 for w in self._workers if w.is_alive())

    @property
    def busy_workers(self) -> int:
        """Get count of busy workers."""
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def idle_workers(self) -> int:
        """Get count of idle workers."""
        return sum(1 for w in self._workers if w.state == WorkerState.IDLE)

    @property
    def queue_size(self) -> int:
        """Get current job queue size."""
        return self._jobs.qsize()

    @property
    def stats(self) -> dict:
        """
        Get thread pool statistics.

        Returns a dict with worker and job counts.
        """
        return {
            "workers": {
                "total": self.size,
                "active": self.active_workers,
                "busy": self.busy_workers,
                "idle": self.idle_workers,
            },
            "jobs": {
                "queued": self.queue_size,
                "completed": sum(w.jobs_completed for w in self._workers),
                "failed": sum(w.jobs_failed for w in self._workers),
            },
        }
