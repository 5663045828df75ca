"""
Field-level diffs between two item snapshots.

`diff(before, after)` is pure: it reads values, compares them and returns a
DiffResult. It never touches the database.

    diff(None, item)   -> INSERT, no changes payload
    diff(item, None)   -> DELETE, no changes payload
    diff(old, new)     -> UPDATE, only the fields whose value differs
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional

from .models import AuditAction

DIFF_FIELDS = ("name", "sku", "quantity", "price", "location")
SNAPSHOT_FIELDS = ("id",) + DIFF_FIELDS + ("created_at", "updated_at")


def _get_value(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def _as_decimal(value: Any) -> Any:
    if value is None or isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return value


def _comparable(field: str, value: Any) -> Any:
    # "10.00" and 10.0 are the same price.
    if field == "price":
        return _as_decimal(value)
    return value


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def _text(value: Any) -> str:
    if value is None:
        return "null"
    return str(_json_value(value))


def snapshot(item: Any) -> Dict[str, Any]:
    """JSON-safe copy of an item's fields, taken before it is mutated."""
    return {field: _json_value(_get_value(item, field)) for field in SNAPSHOT_FIELDS}


@dataclass(frozen=True)
class FieldChange:
    old: Any
    new: Any

    def to_json(self) -> Dict[str, Any]:
        return {"old": _json_value(self.old), "new": _json_value(self.new)}


@dataclass(frozen=True)
class DiffResult:
    action: AuditAction
    changes: Optional[Dict[str, FieldChange]] = None

    @property
    def has_payload(self) -> bool:
        return self.changes is not None

    def to_json(self) -> Optional[Dict[str, Dict[str, Any]]]:
        """Stored form: `{"field": {"old": ..., "new": ...}}`, or None."""
        if self.changes is None:
            return None
        return {field: change.to_json() for field, change in self.changes.items()}

    def as_list(self) -> List[Dict[str, Any]]:
        if not self.changes:
            return []
        rows = []
        for field, change in self.changes.items():
            values = change.to_json()
            rows.append({"field": field, "old_value": values["old"], "new_value": values["new"]})
        return rows

    def render(self) -> str:
        """Flat text form used in exports: `quantity: 5→8; price: 1.00→2.00`."""
        if not self.changes:
            return ""
        return "; ".join(
            f"{field}: {_text(change.old)}→{_text(change.new)}"
            for field, change in self.changes.items()
        )

    @classmethod
    def from_json(cls, action: Any, payload: Optional[Mapping[str, Any]]) -> "DiffResult":
        """Rebuild a DiffResult from the stored JSON form."""
        action = AuditAction(getattr(action, "value", action))
        if payload is None:
            return cls(action=action, changes=None)
        ordered = sorted(
            payload.keys(),
            key=lambda f: DIFF_FIELDS.index(f) if f in DIFF_FIELDS else len(DIFF_FIELDS),
        )
        changes = {
            field: FieldChange(old=_get_value(payload[field], "old"), new=_get_value(payload[field], "new"))
            for field in ordered
        }
        return cls(action=action, changes=changes)


def diff(before: Any, after: Any) -> DiffResult:
    if before is None and after is None:
        raise ValueError("diff() needs at least one snapshot")
    if before is None:
        return DiffResult(action=AuditAction.INSERT)
    if after is None:
        return DiffResult(action=AuditAction.DELETE)

    changes: Dict[str, FieldChange] = {}
    for field in DIFF_FIELDS:
        old = _comparable(field, _get_value(before, field))
        new = _comparable(field, _get_value(after, field))
        if old != new:
            changes[field] = FieldChange(old=old, new=new)
    return DiffResult(action=AuditAction.UPDATE, changes=changes)
