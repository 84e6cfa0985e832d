"""
Single-flight guard for upload runs.

Only one upload may be in flight at a time: two runs would write to the same
serial port and interleave on the same output. A second request is rejected
rather than queued. The guard combines a process-local lock with a PID file
in the temp directory so separate invocations of the CLI are covered too.

The PID file is written under a private name and hard-linked into place, so
it never exists without its owner's PID. A file whose owner cannot be read is
only treated as stale once it is older than STALE_GRACE_SECONDS.
"""

import logging
import os
import tempfile
import threading
import time
from pathlib import Path
from types import TracebackType
from typing import Optional, Type

import psutil

from littlefs_upload.errors import PipelineBusy

LOCK_FILE = Path(tempfile.gettempdir()) / "littlefs_upload.lock"
STALE_GRACE_SECONDS = 10.0
BUSY_MESSAGE = "Another LittleFS upload is already in progress"


class PipelineLock:
    """Non-blocking, process-wide and machine-wide upload lock."""

    _local_lock = threading.Lock()

    def __init__(self, lock_file: Optional[Path] = None):
        self.lock_file = lock_file or LOCK_FILE
        self._held = False

    def acquire(self) -> None:
        """Take the lock.

        Raises:
            PipelineBusy: If another upload is running
        """
        if not self._local_lock.acquire(blocking=False):
            raise PipelineBusy(f"{BUSY_MESSAGE}.")

        try:
            self._acquire_file()
        except BaseException:
            self._local_lock.release()
            raise
        self._held = True

    def release(self) -> None:
        if not self._held:
            return
        self._held = False
        try:
            self.lock_file.unlink(missing_ok=True)
        except OSError as e:
            logging.warning(f"Failed to remove lock file {self.lock_file}: {e}")
        finally:
            self._local_lock.release()

    def _acquire_file(self) -> None:
        for _attempt in range(3):
            if self._publish():
                return

            owner = self._read_owner(self.lock_file)
            if not self._is_stale(owner):
                suffix = f" (pid {owner})" if owner is not None else ""
                raise PipelineBusy(f"{BUSY_MESSAGE}{suffix}.")
            self._remove_stale(owner)

        raise PipelineBusy(f"Unable to take lock file {self.lock_file}")

    def _publish(self) -> bool:
        """Link a file holding our PID into place. False if one exists."""
        private = self.lock_file.with_name(f"{self.lock_file.name}.{os.getpid()}.tmp")
        private.write_text(str(os.getpid()))
        try:
            os.link(private, self.lock_file)
            return True
        except FileExistsError:
            return False
        finally:
            private.unlink(missing_ok=True)

    def _is_stale(self, owner: Optional[int]) -> bool:
        if owner is None:
            # Empty or unreadable: only stale once the grace period is over
            try:
                age = time.time() - self.lock_file.stat().st_mtime
            except FileNotFoundError:
                return True
            return age > STALE_GRACE_SECONDS
        return owner == os.getpid() or not psutil.pid_exists(owner)

    def _remove_stale(self, owner: Optional[int]) -> None:
        """Move the stale file aside, restoring it if another process
        replaced it in the meantime."""
        aside = self.lock_file.with_name(f"{self.lock_file.name}.{os.getpid()}.stale")
        try:
            os.replace(self.lock_file, aside)
        except FileNotFoundError:
            return

        try:
            if self._read_owner(aside) != owner:
                try:
                    os.link(aside, self.lock_file)
                except FileExistsError:
                    pass
                raise PipelineBusy(f"{BUSY_MESSAGE}.")
            logging.info(f"Removed stale lock file: {self.lock_file}")
        finally:
            aside.unlink(missing_ok=True)

    @staticmethod
    def _read_owner(path: Path) -> Optional[int]:
        try:
            return int(path.read_text().strip())
        except (OSError, ValueError):
            return None

    def __enter__(self) -> "PipelineLock":
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.release()
