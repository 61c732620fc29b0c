"""
Per-package advisory lock.

Two instar processes touching the same package would otherwise race
between the "already installed" check and manifest creation.  The
lock is an exclusive, non-blocking ``flock`` on
``<config_dir>/locks/<package>.lock``; it is advisory and only guards
against other instar processes.
"""

from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path
from types import ModuleType

from instar.core.errors import InstarError, PackageLockedError

try:
    import fcntl as _fcntl
except ImportError:  # pragma: no cover
    fcntl: ModuleType | None = None
else:
    fcntl = _fcntl

logger = logging.getLogger(__name__)


class PackageLock:
    """Exclusive lock scoped to one package name."""

    def __init__(self, locks_dir: Path, package: str):
        self.package = package
        self.path = locks_dir / f"{package}.lock"
        self._fd: int | None = None

    @property
    def held(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        """Take the lock or fail immediately.

        Raises:
            PackageLockedError: If another process holds it.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(str(self.path), os.O_RDWR | os.O_CREAT, 0o600)
        except OSError as e:
            raise InstarError(
                f"Cannot create lock file {self.path}: {e}", path=self.path, package=self.package,
            ) from e
        self._fd = fd
        if fcntl is None:
            return
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            os.close(fd)
            self._fd = None
            raise PackageLockedError(
                f"Package {self.package} is locked by another instar process ({self.path})",
                path=self.path,
                package=self.package,
            ) from e
        logger.debug("Acquired lock %s", self.path)

    def release(self) -> None:
        if self._fd is None:
            return
        try:
            if fcntl is not None:
                with contextlib.suppress(OSError):
                    fcntl.flock(self._fd, fcntl.LOCK_UN)
        finally:
            os.close(self._fd)
            self._fd = None
        logger.debug("Released lock %s", self.path)

    def __enter__(self) -> PackageLock:
        self.acquire()
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()
