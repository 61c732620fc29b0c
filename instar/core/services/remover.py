"""
Remover — undo an install by walking its manifest.

For every recorded path the file is deleted, then empty parent
directories are pruned walking upward.  Pruning stops at the first
directory that is non-empty, missing, a category root
(``bin``/``etc``/``include``/``lib``/``share``), the install root, or
the filesystem root.  The manifest is deleted last, so a failed remove
can be retried and will pick up the remaining entries.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from instar.core.errors import DirectoryPruneError, FileDeleteError, RemoveError
from instar.core.models.category import is_category
from instar.core.persistence.manifest import ManifestStore

logger = logging.getLogger(__name__)


@dataclass
class RemoveReport:
    """What a remove deleted."""

    package: str
    deleted: list[Path] = field(default_factory=list)
    pruned: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    missing: list[Path] = field(default_factory=list)

    @property
    def completed(self) -> list[Path]:
        return [*self.deleted, *self.pruned]

    def to_dict(self) -> dict:
        return {
            "package": self.package,
            "deleted": [str(p) for p in self.deleted],
            "pruned": [str(p) for p in self.pruned],
            "skipped": [str(p) for p in self.skipped],
            "missing": [str(p) for p in self.missing],
        }


def remove_package(
    package_name: str,
    install_root: Path,
    store: ManifestStore,
    *,
    missing_ok: bool = False,
) -> RemoveReport:
    """Delete every file a package installed, then its manifest.

    Args:
        package_name: Name of the installed package (manifest name).
        install_root: Current install root; never pruned itself.
        store: Manifest store for the packages directory.
        missing_ok: Treat manifest entries that no longer exist as already
            removed instead of failing.

    Raises:
        NotInstalled: No manifest exists (nothing is touched).
        FileDeleteError: A listed file could not be deleted.
        DirectoryPruneError: An emptied directory could not be removed.
        ManifestDeleteError: The manifest could not be deleted.
    """
    paths = store.read(package_name)
    logger.info("Removing %s (%d recorded file(s))", package_name, len(paths))

    report = RemoveReport(package=package_name)
    root = Path(os.path.abspath(install_root))

    try:
        for path in paths:
            _remove_entry(path, root, report, missing_ok=missing_ok)
        store.delete(package_name)
    except RemoveError as e:
        e.package = e.package or package_name
        e.completed = report.completed
        logger.error(
            "Remove of %s stopped after %d file(s): %s", package_name, len(report.deleted), e,
        )
        raise

    logger.info(
        "Removed %s: %d file(s), %d director%s pruned",
        package_name,
        len(report.deleted),
        len(report.pruned),
        "y" if len(report.pruned) == 1 else "ies",
    )
    return report


def _remove_entry(path: Path, root: Path, report: RemoveReport, *, missing_ok: bool) -> None:
    if path.is_dir() and not path.is_symlink():
        logger.warning("Manifest entry is a directory, leaving it: %s", path)
        report.skipped.append(path)
        return

    try:
        path.unlink()
    except FileNotFoundError as e:
        if not missing_ok:
            raise FileDeleteError(f"Failed to delete {path}: file is missing", path=path) from e
        logger.warning("Already missing: %s", path)
        report.missing.append(path)
    except OSError as e:
        raise FileDeleteError(f"Failed to delete {path}: {e}", path=path) from e
    else:
        report.deleted.append(path)
        logger.debug("Deleted %s", path)

    report.pruned.extend(prune_empty_dirs(path.parent, root))


def prune_empty_dirs(directory: Path, install_root: Path) -> list[Path]:
    """Remove ``directory`` and its ancestors while they are empty.

    Never removes a category root, ``install_root`` or the filesystem root.

    Returns:
        The directories removed, deepest first.

    Raises:
        DirectoryPruneError: If an empty directory cannot be removed.
    """
    removed: list[Path] = []
    current = directory
    while True:
        if current == install_root or current.parent == current:
            break
        if is_category(current.name):
            break
        if not current.is_dir() or current.is_symlink():
            break
        try:
            if any(current.iterdir()):
                break
            current.rmdir()
        except OSError as e:
            raise DirectoryPruneError(f"Failed to remove directory {current}: {e}", path=current) from e

        logger.debug("Pruned %s", current)
        removed.append(current)
        current = current.parent
    return removed
