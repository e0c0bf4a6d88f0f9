"""Per-folder mutual exclusion for aggregate writers."""

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator, Tuple


class FolderLockRegistry:
    """
    One lock per ``(bucket, folder)``, created on first use.

    Every writer of a folder aggregate in this process, incremental and
    backfill alike, must hold the folder's lock for the whole
    read-modify-write. Share a single registry between them.

    Locks are held weakly: an entry lives only while some writer holds or
    waits on it, so the registry does not grow with every folder ever seen.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[Tuple[str, str], threading.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def lock_for(self, bucket: str, folder_name: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get((bucket, folder_name))
            if lock is None:
                lock = threading.Lock()
                self._locks[(bucket, folder_name)] = lock
            return lock

    @contextmanager
    def hold(self, bucket: str, folder_name: str) -> Iterator[None]:
        lock = self.lock_for(bucket, folder_name)
        with lock:
            yield

    @property
    def active_folders(self) -> int:
        """Number of folders whose lock is currently referenced."""
        with self._guard:
            return len(self._locks)
