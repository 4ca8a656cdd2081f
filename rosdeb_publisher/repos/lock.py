"""Advisory lock around repository mutations.

The synchronizer itself does not lock; callers that may race with other
publish runs against the same repository hold this lock for the whole
synchronize operation.
"""

import fcntl
import os
from pathlib import Path
from typing import Optional

from ..common.errors import StoreAccessError
from ..common.logger import get_logger

logger = get_logger("repo_lock")

LOCK_FILENAME = ".rosdeb-publish.lock"


class RepositoryLock:
    """Exclusive flock on a file inside the repository directory."""

    def __init__(self, repo_dir: str, filename: str = LOCK_FILENAME):
        self.path = Path(os.path.expanduser(repo_dir)) / filename
        self._fd: Optional[int] = None

    @property
    def is_held(self) -> bool:
        """Check if this instance currently holds the lock."""
        return self._fd is not None

    def acquire(self) -> None:
        """Block until the lock is held.

        Raises:
            StoreAccessError: If the lock file cannot be opened
        """
        try:
            fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise StoreAccessError(f"Cannot open lock file {self.path}: {e}") from e

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            logger.warning(f"Repository locked by another run, waiting on {self.path}")
            fcntl.flock(fd, fcntl.LOCK_EX)

        self._fd = fd
        logger.debug(f"Acquired {self.path}")

    def release(self) -> None:
        """Release the lock if held."""
        if self._fd is None:
            return
        try:
            fcntl.flock(self._fd, fcntl.LOCK_UN)
        finally:
            os.close(self._fd)
            self._fd = None
        logger.debug(f"Released {self.path}")

    def __enter__(self) -> "RepositoryLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False
