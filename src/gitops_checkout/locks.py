"""
Path Lock Registry for serializing checkout operations.

Guarantees at most one in-flight lifecycle operation per checkout path
within a process, so concurrent git invocations never race on the same
index or .git metadata. Locks for distinct paths are independent.

The registry gives no cross-process guarantee: two processes operating on
the same directory may still race.
"""

import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Union

logger = logging.getLogger(__name__)


def canonical_path(path: Union[str, Path]) -> str:
    """
    Return the canonical string form of a checkout path.

    Expands ~, makes the path absolute, collapses `..` and trailing
    separators and resolves symlinks. The path does not need to exist.
    """
    return str(Path(os.path.expanduser(str(path))).resolve())


class PathLockRegistry:
    """
    Mapping from canonical checkout path to a mutual-exclusion lock.

    Locks are created on first use and never torn down for the lifetime of
    the registry. Each controller owns one registry.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_lock = threading.Lock()  # protects _locks dict

    def _lock_for(self, key: str) -> threading.Lock:
        """
        Get or create the lock for a canonical key.

        Thread-safe method to retrieve existing lock or create new one.
        """
        with self._locks_lock:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    def _take(self, lock: threading.Lock, key: str) -> None:
        if not lock.acquire(blocking=False):
            logger.debug(f"Waiting for checkout lock on {key}")
            lock.acquire()
        logger.debug(f"Checkout lock acquired: {key}")

    def acquire(self, path: Union[str, Path]) -> str:
        """
        Block until no other operation holds the lock for path, then take it.

        Returns:
            The canonical key; pass it to release().
        """
        key = canonical_path(path)
        self._take(self._lock_for(key), key)
        return key

    def release(self, key: Union[str, Path]) -> None:
        """
        Release the lock taken under key.

        key is the value returned by acquire(). Any other path form is
        canonicalised first, which reads the filesystem again.

        Raises:
            RuntimeError: If the lock is not currently held.
        """
        with self._locks_lock:
            lock = self._locks.get(str(key))
        if lock is None:
            key = canonical_path(key)
            lock = self._lock_for(key)
        lock.release()
        logger.debug(f"Checkout lock released: {key}")

    def is_locked(self, path: Union[str, Path]) -> bool:
        """Return True if some operation currently holds the lock for path."""
        return self._lock_for(canonical_path(path)).locked()

    @contextmanager
    def locked(self, path: Union[str, Path]) -> Iterator[str]:
        """
        Scoped acquisition of the lock for path.

        The path is canonicalised once; the same lock object is released on
        every exit path, including exceptions, even if a symlink in the path
        is retargeted while the lock is held.

        Yields:
            The canonical path used as the lock key.
        """
        key = canonical_path(path)
        lock = self._lock_for(key)
        self._take(lock, key)
        try:
            yield key
        finally:
            lock.release()
            logger.debug(f"Checkout lock released: {key}")
