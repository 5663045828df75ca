from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Query, Session

from ...errors import ValidationFailed
from ...pagination import Page, paginate
from ...policy import Operation, ensure_allowed
from ...security import Principal
from ...utils import clock
from ...utils.identifiers import is_valid_item_id
from . import export, models
from .diff import DiffResult

logger = logging.getLogger(__name__)

# Newest first; the id breaks timestamp ties so pages never overlap.
AUDIT_ORDER = (models.AuditEntry.changed_at.desc(), models.AuditEntry.id.asc())


@dataclass
class AuditFilter:
    action: Optional[models.AuditAction] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    item_id: Optional[str] = None
    actor: Optional[str] = None


def parse_action(value: Optional[str]) -> Optional[models.AuditAction]:
    if value is None or value == "":
        return None
    try:
        return models.AuditAction(value)
    except ValueError:
        raise ValidationFailed(
            f"Invalid action {value!r} (allowed: INSERT, UPDATE, DELETE).",
            fields=[{"field": "action", "reason": "unknown action"}],
        )


def build_filter(
    *,
    action: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    item_id: Optional[str] = None,
    actor: Optional[str] = None,
) -> AuditFilter:
    return AuditFilter(
        action=parse_action(action),
        date_from=clock.ensure_utc(date_from),
        date_to=clock.ensure_utc(date_to),
        item_id=(item_id or "").strip() or None,
        actor=(actor or "").strip() or None,
    )


def append_entry(
    db: Session,
    *,
    item_id: str,
    result: DiffResult,
    principal: Principal,
    old_data: Optional[Dict[str, Any]] = None,
    new_data: Optional[Dict[str, Any]] = None,
) -> models.AuditEntry:
    """
    Add one entry to the log inside the caller's transaction.

    `changed_at` is stamped here, never taken from the caller. Failures
    propagate: the caller's transaction must roll back with the mutation.
    """
    entry = models.AuditEntry(
        item_id=item_id,
        action=result.action,
        actor=principal.username,
        actor_user_id=principal.user_id,
        old_data=old_data,
        new_data=new_data,
        diff=result.to_json(),
        changed_at=clock.utcnow(),
    )
    db.add(entry)
    db.flush()
    return entry


def _filtered_query(db: Session, filters: AuditFilter) -> Query:
    query = db.query(models.AuditEntry)
    if filters.action is not None:
        query = query.filter(models.AuditEntry.action == filters.action)
    if filters.date_from is not None:
        query = query.filter(models.AuditEntry.changed_at >= filters.date_from)
    if filters.date_to is not None:
        query = query.filter(models.AuditEntry.changed_at <= filters.date_to)
    if filters.item_id is not None:
        query = query.filter(models.AuditEntry.item_id == filters.item_id)
    if filters.actor is not None:
        query = query.filter(models.AuditEntry.actor == filters.actor)
    return query


def list_for_item(
    db: Session,
    *,
    principal: Principal,
    item_id: str,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
) -> Page[models.AuditEntry]:
    """
    Trail of one item, newest first. Works for deleted items too; an
    unknown id simply yields an empty page.
    """
    ensure_allowed(principal.role, Operation.READ_ITEM_AUDIT, actor=principal.username)
    if not is_valid_item_id(item_id):
        raise ValidationFailed("Invalid item id.", fields=[{"field": "item_id", "reason": "not a UUID"}])
    query = _filtered_query(db, AuditFilter(item_id=item_id))
    return paginate(query, order_by=AUDIT_ORDER, page=page, page_size=page_size)


def query_entries(
    db: Session,
    *,
    principal: Principal,
    filters: AuditFilter,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
) -> Page[models.AuditEntry]:
    ensure_allowed(principal.role, Operation.READ_AUDIT_LOG, actor=principal.username)
    return paginate(_filtered_query(db, filters), order_by=AUDIT_ORDER, page=page, page_size=page_size)


def all_entries(db: Session, filters: AuditFilter) -> List[models.AuditEntry]:
    return _filtered_query(db, filters).order_by(*AUDIT_ORDER).all()


def export_csv(db: Session, *, principal: Principal, filters: AuditFilter) -> bytes:
    """Every matching entry, unpaginated, in the same order as `query_entries`."""
    ensure_allowed(principal.role, Operation.EXPORT_AUDIT, actor=principal.username)
    entries = all_entries(db, filters)
    logger.info(
        "Audit export generated",
        extra={"actor": principal.username, "rows": len(entries)},
    )
    return export.write_audit_csv(entries)
