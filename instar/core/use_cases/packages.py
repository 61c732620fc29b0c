"""
Package use cases — install, remove and list, as called by the CLI.

Each use case loads the configuration, takes the per-package lock,
runs the transaction and turns the outcome into a TransactionResult.
Services raise; use cases never do (except for programming errors).
"""

from __future__ import annotations

import logging
from pathlib import Path

from instar.core.config.loader import load_config
from instar.core.context import InstarContext
from instar.core.errors import InstarError
from instar.core.models.result import TransactionResult
from instar.core.persistence.lock import PackageLock
from instar.core.persistence.manifest import ManifestStore
from instar.core.services.installer import install_archive, package_name_from_archive
from instar.core.services.remover import remove_package

logger = logging.getLogger(__name__)


def run_install(archive_path: Path, ctx: InstarContext) -> TransactionResult:
    """Install an archive into the configured install root."""
    archive_path = Path(archive_path)
    try:
        config = load_config(ctx.config_file)
        package = package_name_from_archive(archive_path)
        store = ManifestStore(ctx.packages_dir)
        store.require_absent(package)
        with PackageLock(ctx.locks_dir, package):
            report = install_archive(archive_path, config.install_dir, store)
    except InstarError as e:
        logger.debug("Install of %s failed: %s", archive_path, e.kind)
        return TransactionResult.from_error("install", e)

    return TransactionResult(
        operation="install",
        package=report.package,
        completed=list(report.files),
        details=report.to_dict(),
    )


def run_remove(package_name: str, ctx: InstarContext, *, missing_ok: bool = False) -> TransactionResult:
    """Remove an installed package by name."""
    try:
        config = load_config(ctx.config_file)
        store = ManifestStore(ctx.packages_dir)
        store.require_installed(package_name)
        with PackageLock(ctx.locks_dir, package_name):
            report = remove_package(
                package_name, config.install_dir, store, missing_ok=missing_ok,
            )
    except InstarError as e:
        logger.debug("Remove of %s failed: %s", package_name, e.kind)
        return TransactionResult.from_error("remove", e, package=package_name)

    return TransactionResult(
        operation="remove",
        package=package_name,
        completed=report.completed,
        details=report.to_dict(),
    )


def list_packages(ctx: InstarContext) -> list[str]:
    """Names of installed packages (empty if nothing was ever installed)."""
    return ManifestStore(ctx.packages_dir).names()
