"""
TransactionResult — outcome of one install or remove.

Neither transaction rolls back, so a failure is one of two things:

    failed   → rejected before anything was changed on disk
    partial  → stopped part-way; ``completed`` lists what was already
               written (install) or deleted (remove) and ``failed_at``
               names the path that broke
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from instar.core.errors import InstarError

STATUS_OK = "ok"
STATUS_PARTIAL = "partial"
STATUS_FAILED = "failed"


@dataclass
class TransactionResult:
    """Result of an install or remove, ready for CLI rendering."""

    operation: str
    package: str | None = None
    status: str = STATUS_OK
    completed: list[Path] = field(default_factory=list)
    failed_at: Path | None = None
    error: str | None = None
    error_kind: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    @property
    def partial(self) -> bool:
        return self.status == STATUS_PARTIAL

    @classmethod
    def from_error(cls, operation: str, err: InstarError, package: str | None = None) -> TransactionResult:
        """Classify an error as failed (nothing changed) or partial."""
        return cls(
            operation=operation,
            package=err.package or package,
            status=STATUS_PARTIAL if err.completed else STATUS_FAILED,
            completed=list(err.completed),
            failed_at=err.path,
            error=str(err),
            error_kind=err.kind,
        )

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "package": self.package,
            "status": self.status,
            "completed": [str(p) for p in self.completed],
            "failed_at": str(self.failed_at) if self.failed_at else None,
            "error": self.error,
            "error_kind": self.error_kind,
            "details": self.details,
        }
