"""
Shared test fixtures and configuration.
"""

import io
import logging
import tarfile
from pathlib import Path

import pytest

from instar.core.context import InstarContext
from instar.core.observability.logging_config import LOGGER_NAME
from instar.core.persistence.manifest import ManifestStore


@pytest.fixture(autouse=True)
def reset_instar_logger():
    """Drop handlers the CLI attached so they don't outlive the test's streams."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def instar_ctx(tmp_path: Path) -> InstarContext:
    """A context whose config dir lives in the test's tmp dir."""
    return InstarContext.at(tmp_path / "config")


@pytest.fixture
def store(instar_ctx: InstarContext) -> ManifestStore:
    return ManifestStore(instar_ctx.packages_dir)


@pytest.fixture
def install_root(tmp_path: Path) -> Path:
    """An install root with the five category directories present."""
    root = tmp_path / "opt"
    for name in ("bin", "etc", "include", "lib", "share"):
        (root / name).mkdir(parents=True)
    return root


@pytest.fixture
def make_archive(tmp_path: Path):
    """Factory building ``<name>.tar.gz`` archives in ``tmp_path/archives``.

    ``members`` maps member names (or is a list of ``(name, value)``
    pairs, kept in order) to bytes for a regular file, None for a
    directory, or ``("symlink", target)`` / ``("hardlink", target)``.
    ``symlinks`` maps further member names to link targets, added last,
    and ``modes`` overrides permission bits.
    """
    archive_dir = tmp_path / "archives"
    archive_dir.mkdir(exist_ok=True)

    def _make(
        file_name: str,
        members,
        *,
        symlinks: dict[str, str] | None = None,
        modes: dict[str, int] | None = None,
    ) -> Path:
        path = archive_dir / file_name
        modes = modes or {}
        items = list(members.items() if isinstance(members, dict) else members)
        items += [(name, ("symlink", target)) for name, target in (symlinks or {}).items()]
        with tarfile.open(path, "w:gz") as tar:
            for name, data in items:
                info = tarfile.TarInfo(name=name)
                if data is None:
                    info.type = tarfile.DIRTYPE
                    info.mode = modes.get(name, 0o755)
                    tar.addfile(info)
                elif isinstance(data, tuple):
                    kind, target = data
                    info.type = tarfile.SYMTYPE if kind == "symlink" else tarfile.LNKTYPE
                    info.linkname = target
                    info.mode = modes.get(name, 0o644)
                    tar.addfile(info)
                else:
                    info.size = len(data)
                    info.mode = modes.get(name, 0o644)
                    tar.addfile(info, io.BytesIO(data))
        return path

    return _make


def snapshot(root: Path) -> set[str]:
    """Every path under ``root``, relative, with a trailing / for directories."""
    return {
        str(p.relative_to(root)) + ("/" if p.is_dir() and not p.is_symlink() else "")
        for p in root.rglob("*")
    }


@pytest.fixture
def tree_snapshot():
    return snapshot
