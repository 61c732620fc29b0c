"""
Run context — where instar keeps its own state for this process.

The locations are resolved ONCE at startup by the entry point and then
passed explicitly to every use case:

    - CLI:    main.py → resolve_context(config_dir_option)
    - Tests:  conftest → InstarContext.at(tmp_path / "config")

Precedence for the config directory:
    --config-dir  >  INSTAR_CONFIG_DIR env var  >  $HOME/.config/instar

Nothing here touches the filesystem; directories are created lazily
by whoever first needs them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "instar.cfg"
PACKAGES_DIR_NAME = "packages"
LOCKS_DIR_NAME = "locks"

ENV_CONFIG_DIR = "INSTAR_CONFIG_DIR"


@dataclass(frozen=True)
class InstarContext:
    """Resolved filesystem locations for one run."""

    config_dir: Path

    @classmethod
    def at(cls, config_dir: Path) -> InstarContext:
        return cls(config_dir=Path(config_dir).expanduser().absolute())

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME

    @property
    def packages_dir(self) -> Path:
        return self.config_dir / PACKAGES_DIR_NAME

    @property
    def locks_dir(self) -> Path:
        return self.config_dir / LOCKS_DIR_NAME


def default_config_dir() -> Path:
    """``$HOME/.config/instar`` (falls back to ``Path.home()``)."""
    home = os.environ.get("HOME")
    base = Path(home) if home else Path.home()
    return base / ".config" / "instar"


def resolve_context(config_dir: Path | str | None = None) -> InstarContext:
    """Build the context from an explicit option, the environment, or defaults."""
    if config_dir is None:
        config_dir = os.environ.get(ENV_CONFIG_DIR) or default_config_dir()
    return InstarContext.at(Path(config_dir))
