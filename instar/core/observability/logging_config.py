"""
Logging for the instar CLI.

Every module logs through ``logging.getLogger(__name__)``, so all of
instar's records flow through the ``instar`` logger.  The root command
calls :func:`configure_logging` once with its global flags; handlers are
attached to that namespace only, leaving the root logger alone.

Console level, first match wins:

    --debug  >  --verbose  >  --quiet  >  $INSTAR_LOG_LEVEL  >  WARNING

With ``$INSTAR_LOG_FILE`` set, records are also appended to that file at
``$INSTAR_LOG_FILE_LEVEL`` (default: the console level).
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

LOGGER_NAME = "instar"

ENV_LOG_LEVEL = "INSTAR_LOG_LEVEL"
ENV_LOG_FILE = "INSTAR_LOG_FILE"
ENV_LOG_FILE_LEVEL = "INSTAR_LOG_FILE_LEVEL"

# (most verbose level the format applies to, format, datefmt)
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname).1s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s %(name)s  %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "instar: %(levelname)s: %(message)s", None),
)

_FILE_FORMAT = "%(asctime)s %(process)d %(levelname)s %(name)s:%(lineno)d  %(message)s"


def parse_level(name: str | None, default: int = logging.WARNING) -> int:
    """``"debug"`` → ``logging.DEBUG``; unknown or empty names give ``default``."""
    if not name:
        return default
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else default


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> int:
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    if quiet:
        return logging.ERROR
    env = os.environ if environ is None else environ
    return parse_level(env.get(ENV_LOG_LEVEL))


def console_formatter(level: int) -> logging.Formatter:
    for threshold, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter(_CONSOLE_FORMATS[-1][1])


def configure_logging(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> logging.Logger:
    """Attach a stderr handler (and optionally a file handler) to the instar logger.

    Safe to call more than once; handlers from a previous call are closed
    and replaced.

    Returns:
        The configured ``instar`` logger.
    """
    env = os.environ if environ is None else environ
    level = resolve_level(debug=debug, verbose=verbose, quiet=quiet, environ=env)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(console_formatter(level))
    logger.addHandler(console)

    lowest = level
    log_file = env.get(ENV_LOG_FILE)
    if log_file:
        file_level = parse_level(env.get(ENV_LOG_FILE_LEVEL), default=level)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)
        lowest = min(lowest, file_level)

    logger.setLevel(lowest)
    return logger
