"""
Configuration loader — reads and writes ``instar.cfg``.

The file is plain text, one ``key: value`` pair per line.  The only
recognized key is ``install_dir``; every other line is ignored.  The
whole file is read on each load and rewritten on each save.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from instar.core.context import InstarContext
from instar.core.errors import InstarError

logger = logging.getLogger(__name__)

_SEPARATOR = ":"


class ConfigError(InstarError):
    """Raised when the configuration cannot be read, written or updated."""


def _default_install_dir() -> Path:
    home = os.environ.get("HOME")
    return (Path(home) if home else Path.home()) / ".local"


class InstarConfig(BaseModel):
    """User configuration — where packages get installed."""

    install_dir: Path = Field(default_factory=_default_install_dir)

    @field_validator("install_dir", mode="after")
    @classmethod
    def _absolutize(cls, value: Path) -> Path:
        return value.expanduser().absolute()


# Keys accepted by ``instar config set``
CONFIG_KEYS = tuple(InstarConfig.model_fields)


def parse_config(text: str) -> InstarConfig:
    """Parse the line-oriented config format; unknown lines are ignored."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition(_SEPARATOR)
        if not sep:
            continue
        key = key.strip()
        value = value.strip()
        if key in CONFIG_KEYS and value:
            values[key] = value
    return InstarConfig.model_validate(values)


def render_config(config: InstarConfig) -> str:
    return "".join(
        f"{key}{_SEPARATOR} {value}\n"
        for key, value in config.model_dump(mode="json").items()
    )


def load_config(path: Path) -> InstarConfig:
    """Load configuration from ``path``.

    A missing file yields the defaults.

    Raises:
        ConfigError: If the file exists but cannot be read.
    """
    if not path.is_file():
        logger.debug("No config file at %s — using defaults", path)
        return InstarConfig()

    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read {path}: {e}", path=path) from e

    config = parse_config(raw)
    logger.debug("Loaded config from %s (install_dir=%s)", path, config.install_dir)
    return config


def save_config(config: InstarConfig, path: Path) -> None:
    """Rewrite the whole config file (atomic write).

    Raises:
        ConfigError: If the directory or file cannot be written.
    """
    content = render_config(config)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".instar_", suffix=".tmp")
        os.close(fd)
        tmp = Path(tmp_path)
        try:
            tmp.write_text(content, encoding="utf-8")
            tmp.replace(path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except OSError as e:
        raise ConfigError(f"Cannot write {path}: {e}", path=path) from e

    logger.info("Config saved to %s", path)


def set_config_value(ctx: InstarContext, key: str, value: str) -> InstarConfig:
    """Update a single key and persist the result.

    Raises:
        ConfigError: On an unknown key, an empty value, or a write failure.
    """
    key = key.strip()
    value = value.strip()
    if key not in CONFIG_KEYS:
        raise ConfigError(f"Unknown config: {key}")
    if not value:
        raise ConfigError(f"Empty value for {key}")

    config = load_config(ctx.config_file)
    config = InstarConfig.model_validate({**config.model_dump(), key: value})
    save_config(config, ctx.config_file)
    return config
