"""
Domain models for instar.

    from instar.core.models import Category, TransactionResult
"""

from instar.core.models.category import Category, is_category
from instar.core.models.result import (
    STATUS_FAILED,
    STATUS_OK,
    STATUS_PARTIAL,
    TransactionResult,
)

__all__ = [
    "Category",
    "STATUS_FAILED",
    "STATUS_OK",
    "STATUS_PARTIAL",
    "TransactionResult",
    "is_category",
]
