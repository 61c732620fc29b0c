"""
Install categories — the only top-level trees an archive may populate.

Everything under ``<install_root>`` that instar owns lives below one of
these five directories.  Membership is tested in exactly one place
(:func:`is_category`) so the install filter and the removal pruning
stop condition can never disagree.
"""

from __future__ import annotations

from enum import StrEnum


class Category(StrEnum):
    """Recognized top-level install directories."""

    BIN = "bin"
    ETC = "etc"
    INCLUDE = "include"
    LIB = "lib"
    SHARE = "share"


_NAMES = frozenset(c.value for c in Category)


def is_category(name: str) -> bool:
    """Return True if ``name`` is exactly one of the category directory names."""
    return name in _NAMES
