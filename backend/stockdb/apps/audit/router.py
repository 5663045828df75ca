from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ...database import get_read_db
from ...security import Principal, get_current_principal
from ...utils import clock

from . import export, schemas, services

router = APIRouter(tags=["audit"])


@router.get("/items/{item_id}/audit", response_model=schemas.AuditPage)
def item_audit_trail(
    item_id: str,
    page: int = 1,
    page_size: int = 20,
    db: Session = Depends(get_read_db),
    principal: Principal = Depends(get_current_principal),
):
    result = services.list_for_item(db, principal=principal, item_id=item_id, page=page, page_size=page_size)
    return schemas.AuditPage.model_validate(result)


@router.get("/audit", response_model=schemas.AuditPage)
def list_audit_entries(
    action: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    item_id: Optional[str] = None,
    actor: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
    db: Session = Depends(get_read_db),
    principal: Principal = Depends(get_current_principal),
):
    filters = services.build_filter(
        action=action,
        date_from=date_from,
        date_to=date_to,
        item_id=item_id,
        actor=actor,
    )
    result = services.query_entries(db, principal=principal, filters=filters, page=page, page_size=page_size)
    return schemas.AuditPage.model_validate(result)


@router.get("/audit/export")
def export_audit_entries(
    action: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    item_id: Optional[str] = None,
    actor: Optional[str] = None,
    db: Session = Depends(get_read_db),
    principal: Principal = Depends(get_current_principal),
):
    filters = services.build_filter(
        action=action,
        date_from=date_from,
        date_to=date_to,
        item_id=item_id,
        actor=actor,
    )
    content = services.export_csv(db, principal=principal, filters=filters)
    filename = export.export_filename(clock.utcnow().date())
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
