"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Callable, Dict, Generator, Optional, Union

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pageserver import PageServer, ServerConfig
from pageserver.handlers import PageHandler
from pageserver.http import RouteIndex


PageTree = Dict[str, Union[str, bytes]]


def write_pages(base_dir: Path, tree: PageTree, pages_dir: str = "pages") -> Path:
    """Create `base_dir/pages_dir` holding the files in `tree` (relative path → content)."""
    root = base_dir / pages_dir
    root.mkdir(parents=True, exist_ok=True)
    for relative, content in tree.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
    return root


def send_request(address, raw: bytes, timeout: float = 10.0) -> bytes:
    """Send raw bytes, then read until the server closes the connection."""
    with socket.create_connection(address, timeout=timeout) as sock:
        sock.sendall(raw)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def make_pages(tmp_path: Path) -> Callable[[PageTree], Path]:
    """Factory: build a pages/ tree under tmp_path and return tmp_path."""
    def _make(tree: PageTree) -> Path:
        write_pages(tmp_path, tree)
        return tmp_path
    return _make


@pytest.fixture
def site(make_pages) -> Path:
    """A small site covering every key-formation rule."""
    return make_pages({
        "index.html": "hi",
        "about.html": "about",
        "a/index.html": "<h1>a</h1>",
        "a/b/index.html": "<h1>b</h1>",
        "assets/logo.svg": "<svg/>",
    })


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class ServerThread:
    """Runs a PageServer in a background thread."""

    def __init__(self, server: PageServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None
        self.error: Optional[BaseException] = None

    @property
    def address(self):
        return self.server.address

    def start(self) -> "ServerThread":
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError(f"Server failed to start: {self.error!r}")
        return self

    def _run(self):
        try:
            self.server.run()
        except BaseException as e:  # surfaced by start()
            self.error = e

    def request(self, raw: bytes, timeout: float = 10.0) -> bytes:
        return send_request(self.address, raw, timeout=timeout)

    def stop(self, timeout: float = 10.0):
        self.server.stop()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)

    @property
    def stopped(self) -> bool:
        return self._thread is not None and not self._thread.is_alive()


@pytest.fixture
def start_server() -> Generator[Callable[..., ServerThread], None, None]:
    """
    Factory: start a PageServer on an OS-picked port.

    Usage:
        srv = start_server(base_dir, workers=2)
        srv.request(b"GET / HTTP/1.1\\r\\n\\r\\n")
    """
    started = []

    def _start(
        base_dir: Path,
        workers: int = 2,
        handler_factory: Optional[Callable[[RouteIndex], PageHandler]] = None,
        **config_kwargs,
    ) -> ServerThread:
        routes = RouteIndex.build(base_dir=base_dir)
        handler = handler_factory(routes) if handler_factory else None
        config = ServerConfig(
            host="127.0.0.1",
            port=0,  # Let OS pick a free port
            workers=workers,
            timeout=5.0,
            log_level="WARNING",
            **config_kwargs,
        )
        srv = ServerThread(PageServer(config, routes=routes, handler=handler)).start()
        started.append(srv)
        return srv

    yield _start

    for srv in started:
        srv.stop()
