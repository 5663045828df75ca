from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from ...utils.clock import ensure_utc
from .diff import DiffResult
from .models import AuditAction


class FieldChangeRead(BaseModel):
    field: str
    old_value: Any = None
    new_value: Any = None


class AuditEntryRead(BaseModel):
    id: int
    item_id: str
    action: AuditAction
    username: str = Field(validation_alias=AliasChoices("username", "actor"))
    actor_user_id: Optional[str] = None
    changed_at: datetime
    diff: Optional[Dict[str, Dict[str, Any]]] = None
    old_data: Optional[Dict[str, Any]] = None
    new_data: Optional[Dict[str, Any]] = None
    changes: List[FieldChangeRead] = Field(default_factory=list)

    class Config:
        from_attributes = True

    @field_validator("changed_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _parse_changes(self) -> "AuditEntryRead":
        if not self.changes and self.diff:
            parsed = DiffResult.from_json(self.action, self.diff)
            self.changes = [FieldChangeRead(**row) for row in parsed.as_list()]
        return self


class AuditPage(BaseModel):
    items: List[AuditEntryRead]
    page: int
    page_size: int
    total_items: int
    total_pages: int

    class Config:
        from_attributes = True
