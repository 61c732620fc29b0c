"""
Path mapper — decide where (and whether) an archive entry is installed.

An archive normally wraps its content in a single top-level directory
named after the package (``foo-1.0/bin/foo``).  That component is
stripped when present; what remains must start with a category name
or the entry is skipped.
"""

from __future__ import annotations

import logging
import os
import posixpath
from pathlib import Path, PurePosixPath

from instar.core.models.category import is_category

logger = logging.getLogger(__name__)


def strip_package_dir(entry_path: PurePosixPath, package_name: str) -> PurePosixPath:
    """Drop the leading ``<package_name>/`` component if it is there."""
    parts = entry_path.parts
    if parts and parts[0] == package_name:
        return PurePosixPath(*parts[1:])
    return entry_path


def map_entry_path(
    entry_path: PurePosixPath | str,
    package_name: str,
    install_root: Path,
) -> Path | None:
    """Return the absolute destination for an entry, or None to skip it.

    The relative path is normalized before the category check, so an
    entry like ``bin/../../etc/passwd`` cannot escape the install tree.
    """
    relative = strip_package_dir(PurePosixPath(entry_path), package_name)
    if not relative.parts:
        return None

    normalized = posixpath.normpath(relative.as_posix())
    first = normalized.split("/", 1)[0]
    if not is_category(first):
        if is_category(relative.parts[0]):
            logger.warning("Skipping entry that escapes its category: %s", entry_path)
        return None

    root = Path(os.path.abspath(install_root))
    return Path(os.path.normpath(root / normalized))


def category_root_for(dest: Path, install_root: Path) -> Path:
    """``/opt/bin/tools/x`` → ``/opt/bin`` for a destination from :func:`map_entry_path`."""
    root = Path(os.path.abspath(install_root))
    return root / dest.relative_to(root).parts[0]


def stays_in_category(dest: Path, install_root: Path) -> bool:
    """True if writing ``dest`` lands inside its category once symlinks are followed.

    :func:`map_entry_path` only checks the path lexically; a symlink
    installed earlier (``bin/d -> /elsewhere``) would otherwise let a later
    entry (``bin/d/x``) write outside the install tree.
    """
    category_root = category_root_for(dest, install_root)
    if dest == category_root:
        return True
    try:
        dest.parent.resolve().relative_to(category_root.resolve())
    except (ValueError, OSError, RuntimeError):
        return False
    return True
