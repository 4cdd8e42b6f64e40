"""
Process Lock Utilities
======================

File lock that keeps a second scheduler service from running cycles
against the same subreddit at the same time.
"""

import os
import fcntl
import logging
import hashlib
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class ProcessLock:
    """File-based process lock to prevent multiple instances."""

    def __init__(self, lock_name: str, lock_dir: Optional[str] = None):
        """
        Initialize process lock.

        Args:
            lock_name: Name for the lock file (without extension)
            lock_dir: Directory for lock files (defaults to /tmp or system temp)
        """
        if lock_dir is None:
            lock_dir = "/tmp" if os.name == "posix" else os.environ.get("TEMP", ".")

        self.lock_file = Path(lock_dir) / f"{lock_name}.lock"
        self.lock_fd: Optional[int] = None
        self.acquired = False

    def acquire(self) -> bool:
        """
        Acquire the lock.

        Returns:
            True if lock was acquired successfully, False if already locked
        """
        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)

            # O_TRUNC would wipe the holder's PID before we know we own the lock
            self.lock_fd = os.open(str(self.lock_file), os.O_CREAT | os.O_WRONLY)

            fcntl.flock(self.lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)

            os.ftruncate(self.lock_fd, 0)
            os.write(self.lock_fd, f"{os.getpid()}\n".encode())
            os.fsync(self.lock_fd)

            self.acquired = True
            logger.info(f"Process lock acquired: {self.lock_file}")
            return True

        except OSError:
            if self.lock_fd is not None:
                try:
                    os.close(self.lock_fd)
                except OSError:
                    pass
                self.lock_fd = None

            existing_pid = self.holder_pid()
            if existing_pid:
                logger.warning(f"Process lock already held by PID {existing_pid}: {self.lock_file}")
            else:
                logger.warning(f"Process lock unavailable: {self.lock_file}")

            return False

    def release(self) -> None:
        """Release the lock."""
        if self.lock_fd is not None and self.acquired:
            try:
                fcntl.flock(self.lock_fd, fcntl.LOCK_UN)
                os.close(self.lock_fd)
                self.lock_file.unlink(missing_ok=True)
                logger.info(f"Process lock released: {self.lock_file}")
            except OSError as e:
                logger.warning(f"Error releasing lock: {e}")
            finally:
                self.lock_fd = None
                self.acquired = False

    def holder_pid(self) -> Optional[int]:
        """Get PID of the process holding the lock."""
        try:
            if self.lock_file.exists():
                content = self.lock_file.read_text().strip()
                return int(content)
        except (ValueError, OSError):
            pass
        return None

    def __enter__(self):
        if not self.acquire():
            raise RuntimeError(f"Could not acquire process lock: {self.lock_file}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()


def lock_for_subreddit(subreddit: str, lock_dir: Optional[str] = None) -> ProcessLock:
    """Build the service lock for one target subreddit.

    Two services pointed at different subreddits may run side by side.
    """
    digest = hashlib.sha256(subreddit.lower().encode()).hexdigest()[:16]
    return ProcessLock(f"hnmirror-{digest}", lock_dir=lock_dir)
