"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the page server.

The defaults ARE the deployment: 127.0.0.1:7878, four workers, pages/
under the working directory. There is no configuration file and no
environment lookup; `python -m pageserver` flags and tests override
fields explicitly.

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the page server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout, max_request_line

    THREADING SETTINGS
    - workers

    PAGES
    - pages_dir

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """The IP address to bind to."""

    port: int = 7878
    """
    The port number to listen on.
    0 lets the OS pick a free port (tests).
    """

    backlog: int = 128
    """Maximum number of queued connections before the OS refuses new ones."""

    buffer_size: int = 8192
    """Size of each recv() in bytes."""

    timeout: Optional[float] = 30.0
    """
    Read/write deadline for accepted sockets, in seconds.
    None = block forever (a slow client then holds its worker indefinitely).
    """

    max_request_line: int = 8192
    """Longest request line accepted, in bytes. Longer lines get a 400."""

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    workers: int = 4
    """Number of worker threads. Fixed for the life of the server."""

    # ─────────────────────────────────────────────────────────────────────
    # PAGES
    # ─────────────────────────────────────────────────────────────────────

    pages_dir: str = "pages"
    """Pages root: relative to the working directory at startup, or absolute."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    @property
    def address(self) -> tuple:
        return (self.host, self.port)

    @property
    def log_level_number(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so that a bad value stops the server before
        it binds a socket.

        Raises:
            ValueError: On the first invalid field.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

        if self.backlog < 1:
            raise ValueError(f"backlog must be >= 1, got {self.backlog}")

        if self.buffer_size < 1024:
            raise ValueError(f"buffer_size must be >= 1024, got {self.buffer_size}")

        if self.max_request_line < 16:
            raise ValueError(f"max_request_line must be >= 16, got {self.max_request_line}")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")

        if not self.pages_dir:
            raise ValueError("pages_dir must not be empty")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")
