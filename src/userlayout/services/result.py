"""ServiceResult and ServiceError — the contract between services and the CLI.

INVARIANT: Every LayoutService method returns a ServiceResult. A
LayoutError raised by the manager becomes ``ok=False`` with the error's
code, message and detail; it never escapes to the caller.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from userlayout.domain.errors import LayoutError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: LayoutError) -> ServiceError:
        return cls(code=exc.code, message=exc.message, detail=exc.detail)


class ServiceResult(BaseModel):
    """Universal return type for layout service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"add_node"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (cache key, cache hits, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, exc: LayoutError) -> ServiceResult:
        """Wrap a LayoutError raised while running *op*."""
        return cls(ok=False, op=op, error=ServiceError.from_exception(exc))
