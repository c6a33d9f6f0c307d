"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for the lifetime of one request.

=============================================================================
READING ONE LINE FROM A BYTE STREAM
=============================================================================

    Client sends:
        "GET /about HTTP/1.1\r\nHost: x\r\n\r\n"

    Server might receive:
        First recv():  "GET /ab"
        Second recv(): "out HTTP/1.1\r\nHost: x\r\n\r\n"

The request line is complete only once its line feed has arrived, so
read_request_line() keeps calling recv() until it sees b"\n" (or the
client closes). Anything after the line feed is ignored.

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED

There is no keep-alive: after the response is written the connection is
closed, and the socket belongs to the job that handles it.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states (for logging and debugging)."""
    NEW = "new"              # Just accepted, haven't read anything yet
    READING = "reading"      # Reading the request line
    PROCESSING = "processing"  # Request line parsed, handler is running
    WRITING = "writing"      # Sending response data
    CLOSING = "closing"      # About to close
    CLOSED = "closed"        # Connection closed, socket released


class RequestLineTooLong(ValueError):
    """The client sent more than max_request_line bytes without a line feed."""


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short connection identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when connection was accepted.
    """

    # Required parameters
    socket: socket.socket
    address: tuple

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    # Configuration (passed from ServerConfig)
    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    max_request_line: int = 8192

    def __post_init__(self):
        # The listener's accept() timeout does not carry over
        self.socket.setblocking(True)
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request_line(self) -> Optional[bytes]:
        """
        Read the first line of the request.

        Returns:
            The line without its "\\r\\n" (or bare "\\n"), the partial line
            if the client closed before sending a line feed, or None if the
            client closed without sending anything.

        Raises:
            RequestLineTooLong: If no line feed arrives within
                                max_request_line bytes.
            socket.timeout: If the client stalls past the deadline.
        """
        self.state = ConnectionState.READING
        buffer = b""

        while b"\n" not in buffer:
            chunk = self._recv()
            if not chunk:
                break  # Client closed its side

            buffer += chunk

            # One extra byte may be the "\r" of a CRLF still in flight
            if b"\n" not in buffer and len(buffer) > self.max_request_line + 1:
                raise RequestLineTooLong(
                    f"No line feed within {self.max_request_line} bytes"
                )

        if not buffer:
            return None

        line = buffer.partition(b"\n")[0].rstrip(b"\r")
        if len(line) > self.max_request_line:
            raise RequestLineTooLong(f"Request line is {len(line)} bytes")

        return line

    def _recv(self) -> bytes:
        """
        Receive data from socket.

        Returns:
            Received bytes, or empty bytes if the client disconnected.
        """
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            # Client disconnected abruptly
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send response data to the client.

        Uses sendall() so that a large body is written completely.

        Returns:
            True if send succeeded, False if connection lost.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR) sends FIN: the client sees end-of-response.
        2. Drain what the client still sends (the unread headers), so the
           kernel does not answer with RST and discard our response.
        3. close() releases the file descriptor.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass  # socket.timeout is an OSError too

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
