"""
Error taxonomy for install and remove transactions.

Every error names the offending path or package in its message.
Errors raised after the install tree (or a manifest) has been touched
carry ``completed`` — the paths already written or deleted — because
neither transaction rolls back.
"""

from __future__ import annotations

from pathlib import Path


class InstarError(Exception):
    """Base class for all instar failures."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | str | None = None,
        package: str | None = None,
    ):
        super().__init__(message)
        self.path = Path(path) if path is not None else None
        self.package = package
        self.completed: list[Path] = []

    @property
    def kind(self) -> str:
        """Short machine-readable error name (the class name)."""
        return type(self).__name__


class PackageLockedError(InstarError):
    """Another process is installing or removing the same package."""


# ── Archive ─────────────────────────────────────────────────────


class InstallError(InstarError):
    """Base class for install failures."""


class ArchiveError(InstallError):
    """The archive could not be read."""


class ArchiveOpenError(ArchiveError):
    """The archive file could not be opened."""


class ArchiveFormatError(ArchiveError):
    """Decompression or tar parsing failed."""


# ── Install ─────────────────────────────────────────────────────


class InvalidArchiveName(InstallError):
    """The archive file name does not end with ``.tar.gz``."""


class ManifestDirCreateError(InstallError):
    """The packages directory could not be created."""


class AlreadyInstalled(InstallError):
    """A manifest for this package already exists."""


class ManifestCreateError(InstallError):
    """The manifest file could not be created."""


class DirectoryCreateError(InstallError):
    """A directory inside the install tree could not be created."""


class ExtractError(InstallError):
    """A file could not be written to its destination."""


# ── Remove ──────────────────────────────────────────────────────


class RemoveError(InstarError):
    """Base class for remove failures."""


class NotInstalled(RemoveError):
    """No manifest exists for this package name."""


class FileDeleteError(RemoveError):
    """A file listed in the manifest could not be deleted."""


class DirectoryPruneError(RemoveError):
    """An emptied package directory could not be removed."""


class ManifestDeleteError(RemoveError):
    """The manifest file itself could not be deleted."""
