"""Exclusive run lock on an output directory."""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
import fcntl
import os
from pathlib import Path

LOCK_FILE_NAME = ".deckvoice.lock"


class RunLockError(RuntimeError):
    """Raised when another run already holds the output directory lock."""


@contextmanager
def output_dir_lock(output_dir: Path) -> Generator[Path, None, None]:
    """Hold an exclusive advisory lock on `output_dir` for the block duration.

    The directory must exist. The lock file itself is left in place; only the
    `flock` state matters.

    Raises:
        RunLockError: If another process holds the lock.
    """

    lock_path = output_dir / LOCK_FILE_NAME
    lock_fd = os.open(str(lock_path), os.O_CREAT | os.O_RDWR, 0o644)
    try:
        try:
            fcntl.flock(lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as exc:
            raise RunLockError(
                f"Another run is already writing to `{output_dir}`."
            ) from exc
        try:
            yield lock_path
        finally:
            fcntl.flock(lock_fd, fcntl.LOCK_UN)
    finally:
        os.close(lock_fd)
