"""
Unit tests for the thread pool and its job queue.
"""

import threading
import time

import pytest

from pageserver.core.thread_pool import (
    Job,
    JobQueue,
    QueueClosedError,
    ThreadPool,
    WorkerState,
)


class TestJobQueue:
    """Tests for the JobQueue channel."""

    def test_fifo_delivery(self):
        """Test jobs are received in send order."""
        jobs = JobQueue()
        sent = [Job(func=print, args=(i,)) for i in range(5)]
        for job in sent:
            jobs.send(job)

        received = [jobs.recv() for _ in range(5)]
        assert received == sent

    def test_close_delivers_pending_jobs_first(self):
        """Test close() still delivers jobs sent before it."""
        jobs = JobQueue()
        job = Job(func=print)
        jobs.send(job)
        jobs.close()

        assert jobs.recv() is job
        assert jobs.recv() is None

    def test_closed_signal_is_sticky(self):
        """Every receiver sees the close, not only the first one."""
        jobs = JobQueue()
        jobs.close()

        assert jobs.recv() is None
        assert jobs.recv() is None
        assert jobs.recv() is None

    def test_send_after_close_raises(self):
        """Test sending on a closed queue."""
        jobs = JobQueue()
        jobs.close()

        with pytest.raises(QueueClosedError):
            jobs.send(Job(func=print))

    def test_close_is_idempotent(self):
        """Test closing twice."""
        jobs = JobQueue()
        jobs.close()
        jobs.close()

        assert jobs.closed
        assert jobs.qsize() == 0

    def test_job_call_passes_arguments(self):
        """Test Job forwards args and kwargs."""
        job = Job(func=lambda a, b=0: a + b, args=(1,), kwargs={"b": 2})
        assert job() == 3


class TestThreadPoolConstruction:
    """Tests for pool construction."""

    @pytest.mark.parametrize("size", [0, -1])
    def test_non_positive_size_fails(self, size):
        """Test sizes below one are rejected."""
        with pytest.raises(ValueError):
            ThreadPool(size)

    def test_non_integer_size_fails(self):
        """Test non-integer sizes are rejected."""
        with pytest.raises(ValueError):
            ThreadPool(2.5)

    def test_workers_spawned_at_construction(self):
        """Test workers start in the constructor."""
        pool = ThreadPool(3)
        try:
            assert pool.size == 3
            assert pool.active_workers == 3
            assert [w.worker_id for w in pool.workers] == [0, 1, 2]
        finally:
            pool.shutdown()


class TestThreadPoolExecution:
    """Tests for job execution and shutdown."""

    @pytest.mark.parametrize("size", [1, 2, 4])
    def test_every_job_runs_exactly_once(self, size):
        """Test each submitted job runs once before shutdown returns."""
        counts = [0] * 200
        lock = threading.Lock()

        def work(i):
            with lock:
                counts[i] += 1

        pool = ThreadPool(size)
        for i in range(len(counts)):
            pool.submit(work, args=(i,))
        pool.shutdown()

        assert counts == [1] * len(counts)

    def test_zero_argument_closure(self):
        """Test submitting a plain callable."""
        ran = threading.Event()

        with ThreadPool(1) as pool:
            pool.submit(ran.set)

        assert ran.is_set()

    def test_jobs_run_in_parallel(self):
        """Two jobs must be inside the barrier at the same time."""
        barrier = threading.Barrier(2, timeout=5.0)
        passed = []

        def rendezvous():
            barrier.wait()
            passed.append(True)

        with ThreadPool(2) as pool:
            pool.submit(rendezvous)
            pool.submit(rendezvous)

        assert passed == [True, True]

    def test_single_worker_runs_in_submission_order(self):
        """Test one worker runs jobs in FIFO order."""
        order = []

        with ThreadPool(1) as pool:
            for i in range(20):
                pool.submit(order.append, args=(i,))

        assert order == list(range(20))

    def test_shutdown_runs_queued_jobs(self):
        """Test shutdown waits for queued jobs."""
        done = []

        pool = ThreadPool(1)
        pool.submit(time.sleep, args=(0.2,))
        for i in range(5):
            pool.submit(done.append, args=(i,))
        pool.shutdown()

        assert done == [0, 1, 2, 3, 4]

    def test_no_worker_alive_after_shutdown(self):
        """Test every worker has exited after shutdown."""
        pool = ThreadPool(4)
        for _ in range(10):
            pool.submit(time.sleep, args=(0.01,))
        pool.shutdown()

        assert pool.active_workers == 0
        assert all(w.state == WorkerState.STOPPED for w in pool.workers)

    def test_failing_job_does_not_kill_worker(self):
        """Test a raising job is logged and counted."""
        after = threading.Event()

        def boom():
            raise RuntimeError("boom")

        pool = ThreadPool(1)
        pool.submit(boom)
        pool.submit(after.set)
        pool.shutdown()

        assert after.is_set()
        assert pool.stats["jobs"]["failed"] == 1
        assert pool.stats["jobs"]["completed"] == 1

    def test_submit_after_shutdown_raises(self):
        """Test submitting to a shut-down pool."""
        pool = ThreadPool(1)
        pool.shutdown()

        with pytest.raises(RuntimeError):
            pool.submit(print)

    def test_shutdown_is_idempotent(self):
        """Test shutting down twice."""
        pool = ThreadPool(2)
        pool.shutdown()
        pool.shutdown()

        assert pool.is_shutdown

    def test_stats_while_busy(self):
        """Test stats report a busy worker."""
        started = threading.Event()
        release = threading.Event()

        def block():
            started.set()
            release.wait(5.0)

        pool = ThreadPool(2)
        try:
            pool.submit(block)
            assert started.wait(5.0)

            stats = pool.stats
            assert stats["workers"]["total"] == 2
            assert stats["workers"]["busy"] == 1
        finally:
            release.set()
            pool.shutdown()
