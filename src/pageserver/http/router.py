"""
=============================================================================
ROUTE INDEX
=============================================================================

Maps request paths to page files. The index is built ONCE at startup by
walking the pages directory and is read-only afterwards, so every worker
thread can share it without locking.

=============================================================================
DIRECTORY-EQUALS-PAGE
=============================================================================

    pages/                          URL key
    ├── index.html           ──►    /
    ├── about.html           ──►    /about          (.html stripped)
    ├── a/
    │   ├── index.html       ──►    /a              (directory IS the page)
    │   └── b/
    │       └── index.html   ──►    /a/b
    └── assets/
        └── logo.svg         ──►    /assets/logo.svg (suffix kept)

    Values are paths relative to the working directory: "pages/a/index.html"

=============================================================================
KEY FORMATION
=============================================================================

    "pages"            → "/"
    "pages/a/b"        → "/a/b"
    "pages/about"      → "/about"
    "pages/subpages/x" → "/subpages/x"

Only the leading "pages" component is removed. A directory whose name
merely contains "pages" is a regular path segment.

=============================================================================
LOOKUP
=============================================================================

Exact match against a dict, O(1). No trailing-slash folding, no case
folding, no ".." resolution: "/a/" and "/A" miss when only "/a" exists,
and a path that is not a key can never reach the filesystem.

=============================================================================
"""

import logging
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Union


logger = logging.getLogger(__name__)


INDEX_FILE = "index.html"
HTML_SUFFIX = ".html"


class RouteIndexError(Exception):
    """
    Raised when the route index cannot be built.

    Startup-fatal: the server never runs with a partial index.
    """


def url_key(relative_path: Union[str, PurePosixPath], pages_dir: str = "pages") -> str:
    """
    Convert a working-directory-relative path into its URL key.

    Args:
        relative_path: POSIX path starting with the pages directory,
                       e.g. "pages/a/b" or "pages".
        pages_dir: The pages directory as given at startup.

    Returns:
        "/" for the pages directory itself, "/" + remainder otherwise.

    Raises:
        ValueError: If the path is not under the pages directory.

    Example:
        url_key("pages/assets/logo.svg")  → "/assets/logo.svg"
    """
    parts = PurePosixPath(relative_path).parts
    root_parts = PurePosixPath(pages_dir).parts

    if parts[:len(root_parts)] != root_parts:
        raise ValueError(f"{relative_path} is not under {pages_dir}")

    return "/" + "/".join(parts[len(root_parts):])


class RouteIndex:
    """
    Immutable URL key → page file mapping.

    =========================================================================
    USAGE
    =========================================================================

        # At startup (working directory holds pages/)
        routes = RouteIndex.build()

        # In a worker thread
        file_path = routes.lookup("/about")   # "pages/about.html" or None
        content = routes.resolve(file_path).read_bytes()

    =========================================================================
    """

    def __init__(
        self,
        routes: Mapping[str, str],
        base_dir: Union[str, Path],
        pages_dir: str = "pages",
    ):
        """
        Wrap an already-computed mapping. Use build() to walk a directory.

        Args:
            routes: URL key → relative file path.
            base_dir: Directory the file paths are relative to.
            pages_dir: Pages directory, relative to base_dir.
        """
        self._routes: Mapping[str, str] = MappingProxyType(dict(routes))
        self.base_dir = Path(base_dir)
        self.pages_dir = pages_dir

    @classmethod
    def build(
        cls,
        pages_dir: str = "pages",
        base_dir: Optional[Union[str, Path]] = None,
    ) -> "RouteIndex":
        """
        Walk `base_dir / pages_dir` and index every regular file.

        ┌─────────────────────────────────────────────────────────────────┐
        │                    build() Walk                                  │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   for entry in sorted(directory):                               │
        │       │                                                          │
        │       ├── directory       → recurse (depth-first)               │
        │       │                                                          │
        │       ├── index.html      → key of the containing directory     │
        │       │                                                          │
        │       ├── *.html          → key of the path minus ".html"       │
        │       │                                                          │
        │       └── any other file  → key of the path as-is               │
        │                                                                  │
        │   Same key twice? The later visit wins.                         │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘

        Args:
            pages_dir: Pages directory, relative to base_dir or absolute.
            base_dir: Defaults to the current working directory.

        Returns:
            The complete, immutable index.

        Raises:
            RouteIndexError: If the pages directory or any entry under it
                             cannot be read.
        """
        logger.debug("Initializing routes...")

        try:
            base = Path(base_dir) if base_dir is not None else Path.cwd()
        except OSError as e:
            raise RouteIndexError(f"Cannot determine working directory: {e}") from e

        root = base / pages_dir
        if not root.is_dir():
            raise RouteIndexError(f"Pages directory not found: {root}")

        # Values are spelled from pages_dir, so an absolute pages_dir
        # yields absolute values and a relative one stays relative to base
        prefix = PurePosixPath(Path(pages_dir).as_posix())

        routes: Dict[str, str] = {}
        cls._read_dir(root, root, prefix, routes)

        index = cls(routes, base, pages_dir)
        logger.info(f"Indexed {len(index)} routes from {root}")
        for key, path in sorted(routes.items()):
            logger.debug(f"route: {key!r} -> {path!r}")
        return index

    @classmethod
    def _read_dir(
        cls,
        directory: Path,
        root: Path,
        prefix: PurePosixPath,
        routes: Dict[str, str],
    ) -> None:
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise RouteIndexError(f"Failed to read directory {directory}: {e}") from e

        dir_key = url_key(prefix / directory.relative_to(root).as_posix(), str(prefix))

        for entry in entries:
            try:
                is_dir = entry.is_dir()
                is_file = not is_dir and entry.is_file()
            except OSError as e:
                raise RouteIndexError(f"Failed to read entry {entry}: {e}") from e

            if is_dir:
                cls._read_dir(entry, root, prefix, routes)
                continue

            if not is_file:
                # Sockets, FIFOs, dangling symlinks
                logger.debug(f"Skipping non-regular entry: {entry}")
                continue

            path = prefix / entry.relative_to(root).as_posix()
            relative = path.as_posix()

            if entry.name == INDEX_FILE:
                key = dir_key
            elif entry.suffix == HTML_SUFFIX:
                # ".html" alone is a dotfile with no suffix and keeps its name
                key = url_key(path.with_suffix(""), str(prefix))
            else:
                key = url_key(path, str(prefix))

            if key in routes:
                logger.debug(f"Route {key!r}: {routes[key]!r} replaced by {relative!r}")
            routes[key] = relative

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def lookup(self, url_path: str) -> Optional[str]:
        """Return the relative file path for `url_path`, or None."""
        return self._routes.get(url_path)

    def resolve(self, file_path: str) -> Path:
        """On-disk path of an indexed file (relative paths use base_dir)."""
        return self.base_dir / file_path

    @property
    def routes(self) -> Mapping[str, str]:
        """Read-only view of the whole index."""
        return self._routes

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, url_path: object) -> bool:
        return url_path in self._routes

    def __iter__(self) -> Iterator[str]:
        return iter(self._routes)

    def __repr__(self) -> str:
        return f"RouteIndex({len(self)} routes, base_dir={str(self.base_dir)!r})"
