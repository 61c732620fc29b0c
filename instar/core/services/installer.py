"""
Installer — apply a ``.tar.gz`` package to the install tree.

Order of operations:

    1. derive the package name from the archive file name
    2. open the archive and check its gzip and tar headers
    3. make sure the packages directory exists
    4. refuse if a manifest for the package already exists
    5. create the (empty) manifest
    6. stream entries: skip, mkdir, or record-then-write each one

Steps 1–5 touch nothing under the install root, so a rejected install
leaves the install tree untouched.  Step 6 is NOT transactional: a
failure part-way leaves the files written so far on disk and listed in
the manifest.  The raised error's ``completed`` lists them.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from instar.core.errors import (
    DirectoryCreateError,
    ExtractError,
    InstallError,
    InvalidArchiveName,
)
from instar.core.persistence.manifest import ManifestStore, ManifestWriter, is_valid_package_name
from instar.core.services.archive_reader import ArchiveEntry, ArchiveReader, EntryKind, open_archive
from instar.core.services.path_mapper import map_entry_path, stays_in_category

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".tar.gz"


@dataclass
class InstallReport:
    """What an install put on disk."""

    package: str
    manifest: Path
    files: list[Path] = field(default_factory=list)
    directories: list[Path] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def completed(self) -> list[Path]:
        """The manifest plus every path materialized so far."""
        return [self.manifest, *self.directories, *self.files]

    def to_dict(self) -> dict:
        return {
            "package": self.package,
            "manifest": str(self.manifest),
            "files": [str(p) for p in self.files],
            "directories": [str(p) for p in self.directories],
            "skipped": self.skipped,
        }


def package_name_from_archive(archive_path: Path) -> str:
    """``/tmp/foo-1.0.tar.gz`` → ``foo-1.0``.

    Raises:
        InvalidArchiveName: If the file name does not end in ``.tar.gz``
            or leaves no usable package name.
    """
    file_name = Path(archive_path).name
    if not file_name.endswith(ARCHIVE_SUFFIX):
        raise InvalidArchiveName(
            f"Not a {ARCHIVE_SUFFIX} archive: {archive_path}", path=archive_path,
        )
    name = file_name[: -len(ARCHIVE_SUFFIX)]
    if not is_valid_package_name(name):
        raise InvalidArchiveName(
            f"Cannot derive a package name from {archive_path}", path=archive_path,
        )
    return name


def install_archive(archive_path: Path, install_root: Path, store: ManifestStore) -> InstallReport:
    """Install every category entry of the archive under ``install_root``.

    Args:
        archive_path: Path to ``<package>.tar.gz``.
        install_root: Base directory holding ``bin``, ``etc``, ``include``,
            ``lib`` and ``share``.
        store: Manifest store for the packages directory.

    Returns:
        InstallReport describing the files and directories created.

    Raises:
        InstallError: Any of the install failure kinds.  Errors raised while
            streaming entries carry ``completed``.
    """
    archive_path = Path(archive_path)
    package = package_name_from_archive(archive_path)
    logger.info("Installing %s from %s into %s", package, archive_path, install_root)

    with open_archive(archive_path) as stream, ArchiveReader(stream, name=str(archive_path)) as reader:
        store.ensure_dir()
        store.require_absent(package)

        with store.create(package) as writer:
            report = InstallReport(package=package, manifest=writer.path)
            try:
                for entry in reader:
                    _install_entry(entry, package, install_root, writer, report)
            except InstallError as e:
                e.package = e.package or package
                e.completed = report.completed
                logger.error(
                    "Install of %s stopped after %d file(s): %s", package, len(report.files), e,
                )
                raise

    logger.info(
        "Installed %s: %d file(s), %d skipped entr%s",
        package,
        len(report.files),
        len(report.skipped),
        "y" if len(report.skipped) == 1 else "ies",
    )
    return report


def _install_entry(
    entry: ArchiveEntry,
    package: str,
    install_root: Path,
    writer: ManifestWriter,
    report: InstallReport,
) -> None:
    dest = map_entry_path(entry.path, package, install_root)
    if dest is None:
        logger.debug("Skipping %s", entry.path)
        report.skipped.append(str(entry.path))
        return

    if not stays_in_category(dest, install_root):
        logger.warning("Skipping %s: %s resolves outside its category", entry.path, dest)
        report.skipped.append(str(entry.path))
        return

    if entry.is_dir:
        try:
            dest.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreateError(
                f"Cannot create directory {dest}: {e}", path=dest, package=package,
            ) from e
        report.directories.append(dest)
        return

    source = None
    if entry.kind == EntryKind.HARDLINK:
        source = _hardlink_source(entry, package, install_root, writer)
        if source is None:
            logger.warning(
                "Skipping hard link %s: target %s was not installed", entry.path, entry.linkname,
            )
            report.skipped.append(str(entry.path))
            return

    if writer.record(dest):
        report.files.append(dest)
    else:
        logger.debug("%s appears more than once in the archive", dest)

    if dest.exists() or dest.is_symlink():
        logger.warning("Overwriting existing file %s", dest)

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        if entry.kind == EntryKind.SYMLINK:
            _write_symlink(entry, dest)
        elif source is not None:
            _copy_installed(source, dest, entry.mode)
        else:
            _write_file(entry, dest)
    except OSError as e:
        raise ExtractError(
            f"Failed to extract the file: {dest}: {e}", path=dest, package=package,
        ) from e

    logger.debug("Wrote %s", dest)


def _hardlink_source(
    entry: ArchiveEntry, package: str, install_root: Path, writer: ManifestWriter,
) -> Path | None:
    """Where the link target was installed, if this transaction installed it as a file."""
    target = map_entry_path(entry.linkname, package, install_root)
    if target is None or target not in writer:
        return None
    if target.is_symlink() or not target.is_file():
        return None
    return target


def _unlink_symlink(dest: Path) -> None:
    # Writing through a pre-existing link would land wherever it points.
    if dest.is_symlink():
        dest.unlink()


def _write_file(entry: ArchiveEntry, dest: Path) -> None:
    _unlink_symlink(dest)
    with open(dest, "wb") as out:
        for chunk in entry.iter_chunks():
            out.write(chunk)
    os.chmod(dest, entry.mode & 0o777)


def _copy_installed(source: Path, dest: Path, mode: int) -> None:
    _unlink_symlink(dest)
    if source != dest:
        shutil.copyfile(source, dest)
    os.chmod(dest, mode & 0o777)


def _write_symlink(entry: ArchiveEntry, dest: Path) -> None:
    if dest.is_symlink() or dest.is_file():
        dest.unlink()
    os.symlink(entry.linkname, dest)
