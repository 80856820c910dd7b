"""
Per-path locking for gitporter.

Two requests that target the same local working copy must not interleave
their git operations. This module maps canonicalized paths to in-process
locks that are acquired with a timeout.
"""

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator

from .platform import normalize_path
from .reconcile.error_types import PathBusyError


class PathLock:
    """A reentrant lock for one canonical path, tracking how many callers use it."""

    def __init__(self, path: Path):
        self.path = path
        self.lock = threading.RLock()
        self.users = 0


class PathLockRegistry:
    """
    Registry of per-path locks.

    Paths are canonicalized first, so ``~/proj`` and ``/home/u/proj/../proj``
    share a lock. Entries are dropped once no caller holds or waits for them.
    """

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout
        self.logger = logging.getLogger('gitporter.file_lock')
        self._registry_lock = threading.Lock()
        self._locks: Dict[Path, PathLock] = {}

    def _checkout(self, key: Path) -> PathLock:
        with self._registry_lock:
            entry = self._locks.get(key)
            if entry is None:
                entry = PathLock(key)
                self._locks[key] = entry
            entry.users += 1
            return entry

    def _release_entry(self, entry: PathLock) -> None:
        with self._registry_lock:
            entry.users -= 1
            if entry.users == 0:
                self._locks.pop(entry.path, None)

    def active_paths(self) -> int:
        """Number of paths currently held or waited on."""
        with self._registry_lock:
            return len(self._locks)

    @contextmanager
    def hold(self, path: Path, timeout: float = None) -> Iterator[Path]:
        """
        Hold the lock for ``path`` for the duration of the block.

        Raises:
            PathBusyError: the lock was not acquired within the timeout
        """
        key = normalize_path(Path(path))
        wait = self.timeout if timeout is None else timeout
        entry = self._checkout(key)
        try:
            if not entry.lock.acquire(timeout=wait):
                raise PathBusyError(
                    f"Another operation is in progress on {key} (waited {wait}s)",
                    operation="acquire_path_lock",
                    path=key
                )
            self.logger.debug(f"Acquired lock for {key}")
            try:
                yield key
            finally:
                entry.lock.release()
                self.logger.debug(f"Released lock for {key}")
        finally:
            self._release_entry(entry)


@contextmanager
def path_lock(registry: PathLockRegistry, path: Path, enabled: bool = True) -> Iterator[Path]:
    """Hold ``path`` through ``registry`` when ``enabled``; otherwise a no-op."""
    if not enabled:
        yield Path(path)
        return
    with registry.hold(path) as key:
        yield key
