"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Owns the listening socket and the accept loop. Every accepted client is
wrapped in a Connection and handed to a callback; the callback (the page
server) turns it into a thread pool job.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create the listening socket
    2. bind()      Reserve 127.0.0.1:7878       ← failure is startup-fatal
    3. listen()    OS starts queueing connections (backlog)
    4. accept()    One new socket per client     ← errors are logged, loop goes on
    5. close()     Release the listening socket on shutdown

=============================================================================
SIGNAL HANDLING FOR GRACEFUL SHUTDOWN
=============================================================================

SIGINT (2):   Ctrl+C in a terminal
SIGTERM (15): docker stop, systemd stop, kill <pid>

Both only flip the running flag. The accept loop notices within one
accept() timeout, returns, and the caller tears the thread pool down,
letting in-flight jobs finish. The handlers stay installed until the
caller restores them after that teardown, so a second signal during the
drain is absorbed the same way.

Signal handlers can only be installed from the main thread. When the
server runs in another thread (tests), signals are left alone and
shutdown() is called directly.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    bind()            Create, configure, bind and listen()            │
    │        │                                                             │
    │    serve(callback)   Run the accept loop                             │
    │        │                                                             │
    │        └──► while running:                                           │
    │                accept()          Wait for connection (1s timeout)    │
    │                Connection()      Wrap client socket                  │
    │                callback(conn)    Hand off to the page server         │
    │                                                                      │
    │    shutdown()        Stop the loop (signal handler or other thread)  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        server = SocketServer(config)
        server.bind()                  # Raises OSError if the port is taken
        server.install_signal_handlers()
        server.serve(handle_connection)  # Blocks until shutdown
        ...                              # drain work, then
        server.restore_signal_handlers()
    """

    def __init__(self, config: ServerConfig):
        """
        Initialize the socket server.

        Args:
            config: Server configuration (host, port, backlog, timeouts).
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        self._original_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (ip, port).

        With port 0 in the config this is the port the OS picked.
        """
        if self._socket is not None:
            return self._socket.getsockname()[:2]
        return self.config.address

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # SO_REUSEADDR: restart without waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # TCP_NODELAY: send small responses immediately
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # accept() wakes up every second to check the running flag
        sock.settimeout(1.0)

        return sock

    def bind(self) -> Tuple[str, int]:
        """
        Create the listening socket and bind it.

        Returns:
            The bound (ip, port).

        Raises:
            OSError: If the address cannot be bound.
        """
        sock = self._create_socket()

        try:
            sock.bind(self.config.address)
            sock.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            sock.close()
            raise

        self._socket = sock
        self._running = True
        return self.address

    def install_signal_handlers(self):
        """
        Route SIGTERM/SIGINT to shutdown() (main thread only).

        The owner keeps them installed until its own teardown is over, so
        a repeated signal while the pool drains only repeats shutdown().
        """
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in main thread, signal handlers not installed")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def restore_signal_handlers(self):
        """Put back whatever handlers install_signal_handlers() replaced."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def serve(self, connection_handler: Callable[[Connection], None]):
        """
        Accept connections until shutdown() is called.

        Binds first if bind() has not been called yet.

        Args:
            connection_handler: Receives each new Connection. Must return
                                quickly (it only submits a job).
        """
        if self._socket is None:
            self.bind()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Main loop for accepting connections.

        ┌─────────────────────────────────────────────────────────────────┐
        │                     Accept Loop Flow                             │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   while self._running:                                           │
        │       ├──► accept()            (timeout → loop again)           │
        │       ├──► Connection(...)     wrap client socket               │
        │       └──► connection_handler(conn)                             │
        │                                                                  │
        │   OSError while running → log, keep accepting                    │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running:
                    break
                logger.error(f"Failed to establish a connection: {e}")
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_request_line=self.config.max_request_line,
            )

            connection_handler(conn)

    def shutdown(self):
        """
        Initiate graceful shutdown.

        Only flips a flag, so signal handlers and other threads may call it
        repeatedly. The accept loop notices within one accept timeout.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed
            self._socket = None

        self._running = False
        logger.info("Socket server stopped")
