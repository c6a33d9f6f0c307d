"""
=============================================================================
PAGESERVER - Minimal Static Page Server on Raw Sockets
=============================================================================

Serves the HTML pages (and any other files) found under pages/ at startup,
over a minimal subset of HTTP/1.1, using a fixed pool of worker threads.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    pageserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m pageserver)
    ├── server.py            # PageServer: startup, dispatch, shutdown
    ├── config.py            # ServerConfig dataclass
    ├── core/                # Low-level components
    │   ├── socket_server.py # Listening socket and accept loop
    │   ├── connection.py    # Client socket wrapper
    │   └── thread_pool.py   # Fixed-size thread pool
    ├── http/                # HTTP protocol components
    │   ├── request.py       # Request line parsing
    │   ├── response.py      # Response serialization
    │   ├── router.py        # RouteIndex (URL key → page file)
    │   └── status_codes.py  # HTTP status enum
    └── handlers/
        └── pages.py         # PageHandler

=============================================================================
QUICK START
=============================================================================

    $ ls pages/
    about.html  index.html  assets/

    $ python -m pageserver
    ... Server listening on 127.0.0.1:7878

    $ curl -i http://127.0.0.1:7878/about
    HTTP/1.1 200 OK
    Content-Length: 5

    about

=============================================================================
"""

__version__ = "1.0.0"

from .server import PageServer
from .config import ServerConfig

__all__ = ["PageServer", "ServerConfig", "__version__"]
