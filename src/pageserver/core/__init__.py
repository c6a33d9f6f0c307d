"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking and concurrency plumbing:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  SOCKET SERVER   Listening socket, accept loop, signals             │
    └─────────────────────────────────┬───────────────────────────────────┘
                                      │ one Connection per client
                                      ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  THREAD POOL     Fixed workers, one shared FIFO job queue           │
    └─────────────────────────────────┬───────────────────────────────────┘
                                      │ one job per Connection
                                      ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  CONNECTION      Read request line, send response, close            │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState, RequestLineTooLong
from .thread_pool import ThreadPool, Job, JobQueue, QueueClosedError, Worker, WorkerState

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "RequestLineTooLong",
    "ThreadPool",
    "Job",
    "JobQueue",
    "QueueClosedError",
    "Worker",
    "WorkerState",
]
