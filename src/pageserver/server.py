"""
=============================================================================
PAGE SERVER
=============================================================================

Ties the components together: route index, thread pool, socket server.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        PageServer.run()                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. RouteIndex.build()      walk pages/        (fatal on error)    │
    │   2. SocketServer.bind()     127.0.0.1:7878     (fatal on error)    │
    │   3. ThreadPool(workers)     spawn workers, install signal handlers │
    │   4. SocketServer.serve()    accept loop (blocks)                   │
    │   5. ThreadPool.shutdown()   run queued jobs, join workers          │
    │   6. restore signals         only after the pool has joined         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST FLOW
=============================================================================

    accept()  (main thread)
       │
       └──► pool.submit(_process_connection, conn)
                 │
                 ▼  (worker thread)
            read request line ──► parse ──► PageHandler.handle()
                                                 │
                                  lookup ──► read file ──► response
                                                 │
            send response bytes ◄────────────────┘
                 │
                 └──► close connection

Everything after submit() happens inside ONE job. Errors in that job are
logged and end with the connection closed; they never reach the worker
loop or other connections.

=============================================================================
"""

import logging
import socket
import threading
import time
from typing import Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState, ThreadPool, RequestLineTooLong
from .handlers import PageHandler
from .http import (
    HTTPParseError,
    HTTPResponse,
    RouteIndex,
    bad_request,
    internal_error,
    parse_request_line,
)


logger = logging.getLogger(__name__)


class PageServer:
    """
    Static page server.

    =========================================================================
    USAGE
    =========================================================================

        # Serve ./pages on 127.0.0.1:7878 with 4 workers (blocking)
        PageServer().run()

        # Tests: pre-built index, OS-picked port, background thread
        server = PageServer(ServerConfig(port=0), routes=RouteIndex.build(base_dir=tmp))
        thread = threading.Thread(target=server.run)
        thread.start()
        server.wait_until_ready()
        ...
        server.stop()
        thread.join()

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        routes: Optional[RouteIndex] = None,
        handler: Optional[PageHandler] = None,
    ):
        """
        Args:
            config: Server configuration. Defaults apply when omitted.
            routes: Pre-built route index. Built from config.pages_dir in
                    run() when omitted.
            handler: Request handler. A PageHandler over `routes` when
                     omitted.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self._routes = routes
        self._handler = handler

        self._socket_server = SocketServer(self.config)
        self._thread_pool: Optional[ThreadPool] = None

        self._ready = threading.Event()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def routes(self) -> Optional[RouteIndex]:
        return self._routes

    @property
    def thread_pool(self) -> Optional[ThreadPool]:
        return self._thread_pool

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (ip, port); the real port once the socket is bound."""
        return self._socket_server.address

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Start the server (blocking).

        Returns after stop(), SIGTERM or SIGINT, once every in-flight job
        has finished.

        Raises:
            RouteIndexError: If the pages directory cannot be indexed.
            OSError: If the listening socket cannot be bound.
        """
        self._setup_logging()

        if self._routes is None:
            self._routes = RouteIndex.build(self.config.pages_dir)
        if self._handler is None:
            self._handler = PageHandler(self._routes)

        self._socket_server.bind()
        self._thread_pool = ThreadPool(self.config.workers)
        self._socket_server.install_signal_handlers()

        host, port = self.address
        logger.info(f"Serving {len(self._routes)} routes on http://{host}:{port}")

        try:
            self._ready.set()
            self._socket_server.serve(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until run() is accepting connections. False on timeout."""
        return self._ready.wait(timeout)

    def stop(self):
        """Ask the accept loop to stop. run() then drains the pool and returns."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = self.config.log_level_number

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("pageserver").setLevel(level)

    def _shutdown(self):
        """
        Graceful shutdown.

        The accept loop has already exited, so nothing new is submitted.
        Closing the pool lets every queued and in-flight job finish before
        the workers are joined.
        """
        logger.info("Shutting down server...")

        if self._thread_pool is not None:
            self._thread_pool.shutdown()

        # Signals keep meaning "shutdown" until every job has finished
        self._socket_server.restore_signal_handlers()

        self._ready.clear()
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Called by SocketServer for each new connection: queue it."""
        self._thread_pool.submit(self._process_connection, args=(conn,))

    def _process_connection(self, conn: Connection):
        """
        Serve one connection (runs in a worker thread).

        ┌─────────────────────────────────────────────────────────────────┐
        │                 Per-connection outcomes                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   nothing sent, client closed   → close                         │
        │   malformed / oversized line    → 400, close                    │
        │   read timeout                  → close                         │
        │   route miss                    → 404, close                    │
        │   file read error               → 500, close                    │
        │   handler raised                → 500, close                    │
        │   hit                           → 200 + body, close             │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘
        """
        start_time = time.time()

        with conn:  # Context manager ensures connection is closed
            try:
                line = conn.read_request_line()
                if line is None:
                    logger.debug(f"[{conn.id}] Client closed without a request")
                    return

                try:
                    request = parse_request_line(line)
                except HTTPParseError as e:
                    logger.error(f"[{conn.id}] Malformed request: {e}")
                    self._send(conn, bad_request(), repr(line), start_time)
                    return

                conn.state = ConnectionState.PROCESSING

                try:
                    response = self._handler.handle(request)
                except Exception as e:
                    logger.exception(f"[{conn.id}] Handler error: {e}")
                    response = internal_error()

                self._send(conn, response, request.request_line, start_time)

            except RequestLineTooLong as e:
                logger.error(f"[{conn.id}] Malformed request: {e}")
                self._send(conn, bad_request(), "<request line too long>", start_time)

            except socket.timeout:
                logger.warning(f"[{conn.id}] Timed out reading request from {conn.client_ip}")

            except Exception as e:
                logger.exception(f"[{conn.id}] Connection error: {e}")

    def _send(self, conn: Connection, response: HTTPResponse, request_line: str, start_time: float):
        """Write the response and emit one access log line."""
        sent = conn.send_response(response.to_bytes())

        elapsed_ms = (time.time() - start_time) * 1000
        level = logging.WARNING if response.status.is_error else logging.INFO
        logger.log(
            level,
            f'[{conn.id}] {conn.client_ip} "{request_line}" '
            f"{int(response.status)} {len(response.body)} {elapsed_ms:.1f}ms"
            + ("" if sent else " (send failed)")
        )
