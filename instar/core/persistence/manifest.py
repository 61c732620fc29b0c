"""
Manifest store — one file per installed package.

A manifest is plain text: one absolute file path per line, newline
terminated, no escaping.  Its existence in the packages directory is
what "installed" means.  Directories are never recorded.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TextIO

from instar.core.errors import (
    AlreadyInstalled,
    ManifestCreateError,
    ManifestDeleteError,
    ManifestDirCreateError,
    NotInstalled,
)

logger = logging.getLogger(__name__)


def is_valid_package_name(name: str) -> bool:
    """A manifest name must be a single, non-hidden path component."""
    return bool(name) and not name.startswith(".") and "/" not in name and "\\" not in name


class ManifestWriter:
    """Appends paths to an open manifest, flushing after every line.

    Each path is written at most once per manifest.
    """

    def __init__(self, path: Path, handle: TextIO):
        self._path = path
        self._handle = handle
        self._recorded: set[Path] = set()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def count(self) -> int:
        return len(self._recorded)

    def __contains__(self, file_path: Path) -> bool:
        return file_path in self._recorded

    def record(self, file_path: Path) -> bool:
        """Append ``file_path``; return False if it was already recorded."""
        if file_path in self._recorded:
            return False
        self._handle.write(f"{file_path}\n")
        self._handle.flush()
        self._recorded.add(file_path)
        return True

    def close(self) -> None:
        self._handle.close()

    def __enter__(self) -> ManifestWriter:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class ManifestStore:
    """Manifests for all installed packages, kept in ``packages_dir``."""

    def __init__(self, packages_dir: Path):
        self._dir = packages_dir

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, name: str) -> Path:
        return self._dir / name

    def exists(self, name: str) -> bool:
        return is_valid_package_name(name) and self.path_for(name).is_file()

    def ensure_dir(self) -> None:
        """Create the packages directory if it is missing.

        Raises:
            ManifestDirCreateError: If it cannot be created.
        """
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ManifestDirCreateError(
                f"Cannot create packages directory {self._dir}: {e}. "
                "For safety, nothing was installed.",
                path=self._dir,
            ) from e

    def create(self, name: str) -> ManifestWriter:
        """Create an empty manifest and return a writer for it.

        Raises:
            AlreadyInstalled: If the manifest already exists.
            ManifestCreateError: If the file cannot be created.
        """
        path = self.path_for(name)
        try:
            handle = path.open("x", encoding="utf-8")
        except FileExistsError as e:
            raise AlreadyInstalled(
                f"Package {name} is already installed", path=path, package=name,
            ) from e
        except OSError as e:
            raise ManifestCreateError(
                f"Cannot create manifest {path}: {e}. For safety, {name} was not installed.",
                path=path,
                package=name,
            ) from e
        logger.debug("Created manifest %s", path)
        return ManifestWriter(path, handle)

    def require_installed(self, name: str) -> None:
        """Raise NotInstalled unless a manifest for ``name`` exists."""
        if not self.exists(name):
            raise NotInstalled(f"Package {name} is not installed", package=name)

    def require_absent(self, name: str) -> None:
        """Raise AlreadyInstalled if a manifest for ``name`` exists."""
        if self.exists(name):
            raise AlreadyInstalled(
                f"Package {name} is already installed", path=self.path_for(name), package=name,
            )

    def read(self, name: str) -> list[Path]:
        """Return the recorded paths, in install order.

        Raises:
            NotInstalled: If there is no manifest for ``name``.
        """
        self.require_installed(name)
        path = self.path_for(name)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise NotInstalled(f"Package {name} is not installed", package=name) from e
        return [Path(line) for line in text.splitlines() if line.strip()]

    def delete(self, name: str) -> None:
        """Remove the manifest file.

        Raises:
            ManifestDeleteError: If it cannot be removed.
        """
        path = self.path_for(name)
        try:
            path.unlink()
        except OSError as e:
            raise ManifestDeleteError(
                f"Cannot delete manifest {path}: {e}", path=path, package=name,
            ) from e
        logger.debug("Deleted manifest %s", path)

    def names(self) -> list[str]:
        """Names of all installed packages, sorted."""
        if not self._dir.is_dir():
            return []
        return sorted(
            p.name for p in self._dir.iterdir()
            if p.is_file() and is_valid_package_name(p.name)
        )
