"""Per-root memoization of module scans."""

from __future__ import annotations

import logging
import re
import threading
from pathlib import Path

from timodule.registry.archive import UnzipFunc, expand_archives
from timodule.registry.scanner import scan_modules
from timodule.registry.types import ScanResult

__all__ = ["ScanCache", "canonical_root"]


def canonical_root(root: str | Path) -> Path:
    """Absolute, normalized form of *root* used as the cache key."""
    return Path(root).expanduser().resolve()


class ScanCache:
    """Scans each canonical root at most once for the lifetime of the cache.

    Construct one per process (or per test) and share it. Concurrent first
    requests for the same root block on that root's lock only; other roots
    proceed independently. Entries are never replaced or removed, and a scan
    that raises is not cached.
    """

    def __init__(self, unzip: UnzipFunc | None = None) -> None:
        self._entries: dict[Path, ScanResult] = {}
        self._root_locks: dict[Path, threading.Lock] = {}
        self._guard = threading.Lock()
        self._unzip = unzip
        self._scan_count = 0

    def _lock_for(self, key: Path) -> threading.Lock:
        with self._guard:
            lock = self._root_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._root_locks[key] = lock
            return lock

    def scan(
        self,
        root: str | Path,
        ignore: re.Pattern[str] | None = None,
        log: logging.Logger | None = None,
    ) -> ScanResult:
        """Return the ScanResult for *root*, expanding archives and walking it on first use.

        Raises:
            SearchPathNotFoundError: If *root* is not a directory.
        """
        key = canonical_root(root)
        cached = self._entries.get(key)
        if cached is not None:
            return cached

        with self._lock_for(key):
            cached = self._entries.get(key)
            if cached is not None:
                return cached

            if key.is_dir():
                expand_archives(key, unzip=self._unzip, log=log)
            result = scan_modules(key, ignore=ignore, log=log)

            with self._guard:
                self._entries[key] = result
                self._scan_count += 1
            return result

    @property
    def scan_count(self) -> int:
        """Number of roots actually walked."""
        with self._guard:
            return self._scan_count

    def roots(self) -> list[Path]:
        with self._guard:
            return list(self._entries)

    def __contains__(self, root: object) -> bool:
        if not isinstance(root, (str, Path)):
            return False
        key = canonical_root(root)
        with self._guard:
            return key in self._entries

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
