"""
Error taxonomy shared by the item store, audit log and routers.

Every error is an HTTPException so services can raise it directly and
FastAPI renders it without extra plumbing. The `kind` lets clients tell
the failure classes apart:

    {"detail": {"kind": "NotFound", "message": "Item not found."}}
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status


class StockError(HTTPException):
    kind = "StockError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, fields: Optional[List[Dict[str, Any]]] = None) -> None:
        detail: Dict[str, Any] = {"kind": self.kind, "message": message}
        if fields:
            detail["fields"] = fields
        super().__init__(status_code=self.status_code, detail=detail)
        self.message = message
        self.fields = fields or []

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class ValidationFailed(StockError):
    """Input rejected; nothing was changed."""

    kind = "ValidationFailed"
    status_code = status.HTTP_400_BAD_REQUEST


class DuplicateSku(ValidationFailed):
    """Another item already uses the requested SKU."""

    status_code = status.HTTP_409_CONFLICT


class NotFound(StockError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class Unauthorized(StockError):
    """
    The caller is authenticated but their role lacks the capability.

    Raised before any mutation or diff computation starts.
    """

    kind = "Unauthorized"
    status_code = status.HTTP_403_FORBIDDEN


class StorageError(StockError):
    """
    The database failed while committing. The transaction was rolled back,
    so neither the item change nor its audit entry was stored.
    """

    kind = "StorageError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
