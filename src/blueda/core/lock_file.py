# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Advisory lock files for processes sharing a filesystem resource.

A lock is a file created with ``O_CREAT | O_EXCL``: creation succeeds for
exactly one process. Other processes poll until the file disappears or the
retries run out.
"""

import logging
import os
import time
from pathlib import Path
from typing import Union

from blueda.core.exceptions import LockFileError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _try_create(path: Path) -> bool:
    try:
        fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    except FileExistsError:
        return False
    except OSError as e:
        raise LockFileError(f"Cannot create lock file {path}: {e}") from e
    try:
        os.write(fd, str(os.getpid()).encode())
    finally:
        os.close(fd)
    return True


def lock(path: PathLike, retries: int = 60, poll_interval: float = 1.0) -> bool:
    """
    Create the lock file ``path``.

    Args:
        path: Lock file path
        retries: Number of additional attempts after the first one
        poll_interval: Seconds between attempts

    Returns:
        True if the lock was acquired, False if it was still held after
        ``retries`` further attempts.
    """
    path = Path(path)
    for attempt in range(retries + 1):
        if _try_create(path):
            return True
        if attempt < retries:
            logger.debug(f"Lock {path} is held, retrying in {poll_interval}s")
            time.sleep(poll_interval)
    return False


def unlock(path: PathLike) -> bool:
    """Remove the lock file ``path``; return False if it did not exist."""
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    return True


class LockFile:
    """
    Context manager holding a lock file for the duration of a block.

    Example:
        >>> with LockFile(output_path.with_suffix('.lock')):
        ...     append_record(output_path, state)
    """

    def __init__(self, path: PathLike, retries: int = 60, poll_interval: float = 1.0):
        self.path = Path(path)
        self.retries = retries
        self.poll_interval = poll_interval
        self.acquired = False

    def acquire(self) -> None:
        if not lock(self.path, self.retries, self.poll_interval):
            raise LockFileError(
                f"Lock file {self.path} still present after {self.retries} retries"
            )
        self.acquired = True

    def release(self) -> None:
        if self.acquired:
            unlock(self.path)
            self.acquired = False

    def __enter__(self) -> 'LockFile':
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
