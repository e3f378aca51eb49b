"""Exclusive ``<file>.lock`` sentinel used for atomic whole-file rewrites."""

import logging
import os
from pathlib import Path

from .errors import LockError

logger = logging.getLogger(__name__)


class LockFile:
    """
    Lock a file by creating ``<path>.lock`` exclusively.
    
    New content is written into the lock file and renamed over the target
    on commit, so readers only ever see the old file or the complete new
    one. Releasing without committing deletes the lock and leaves the
    target untouched.
    
    Works as a context manager; leaving the block without calling
    commit() rolls back.
    """
    
    def __init__(self, path):
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + '.lock')
        self._fd = None
    
    @property
    def locked(self) -> bool:
        return self._fd is not None
    
    def acquire(self) -> 'LockFile':
        """
        Create the lock file.
        
        Raises:
            LockError: The lock file already exists
        """
        try:
            self._fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            raise LockError(
                f"Unable to create '{self.lock_path}': File exists. "
                "Another process may be writing to it."
            ) from None
        logger.debug("Acquired lock %s", self.lock_path)
        return self
    
    def write(self, data: bytes) -> None:
        """Write data into the lock file."""
        if self._fd is None:
            raise LockError(f"Lock on {self.path} is not held")
        view = memoryview(data)
        while view:
            written = os.write(self._fd, view)
            view = view[written:]
    
    def commit(self) -> None:
        """Flush the lock file and rename it over the target."""
        if self._fd is None:
            raise LockError(f"Lock on {self.path} is not held")
        fd, self._fd = self._fd, None
        try:
            try:
                os.fsync(fd)
            finally:
                os.close(fd)
            os.replace(self.lock_path, self.path)
        except OSError:
            self._unlink()
            raise
        logger.debug("Committed %s", self.path)
    
    def rollback(self) -> None:
        """Discard the lock file without touching the target."""
        if self._fd is None:
            return
        os.close(self._fd)
        self._fd = None
        self._unlink()
        logger.debug("Released lock %s", self.lock_path)
    
    def _unlink(self) -> None:
        try:
            os.unlink(self.lock_path)
        except FileNotFoundError:
            pass
    
    def __enter__(self) -> 'LockFile':
        return self.acquire()
    
    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.rollback()
    
    def __repr__(self) -> str:
        return f"LockFile(path={self.path}, locked={self.locked})"
