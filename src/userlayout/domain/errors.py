"""LayoutError — the single failure kind of the layout domain.

Every operation that cannot complete raises LayoutError carrying a
machine-readable code. The service layer turns it into a ServiceError.

INVARIANT: Permission predicates never raise for an ordinary denial.
They raise only when a referenced node does not exist.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Codes carried by :class:`LayoutError`."""

    NOT_FOUND = "NOT_FOUND"
    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
    MALFORMED_LAYOUT = "MALFORMED_LAYOUT"
    SERIALIZATION_FAILED = "SERIALIZATION_FAILED"
    NOT_PERMITTED = "NOT_PERMITTED"
    NO_STORE = "NO_STORE"


class LayoutError(Exception):
    """A layout operation failed.

    Attributes:
        code: One of :class:`ErrorCode` (stored as its string value).
        message: Human-readable description.
        detail: Structured context (offending ids, types, etc.).
    """

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        *,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = str(code)
        self.message = message
        self.detail: dict[str, Any] = detail or {}

    @classmethod
    def not_found(cls, node_id: object) -> LayoutError:
        return cls(
            ErrorCode.NOT_FOUND,
            f"No node found with ID: {node_id}",
            detail={"node_id": node_id},
        )

    @classmethod
    def malformed(cls, message: str, **detail: Any) -> LayoutError:
        return cls(ErrorCode.MALFORMED_LAYOUT, message, detail=detail)
