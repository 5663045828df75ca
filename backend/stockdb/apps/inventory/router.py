from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ...database import get_read_db, get_write_db
from ...security import Principal, get_current_principal

from . import schemas, services

router = APIRouter(prefix="/items", tags=["inventory"])


@router.get("", response_model=schemas.ItemPage)
def list_items(
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
    db: Session = Depends(get_read_db),
    principal: Principal = Depends(get_current_principal),
):
    result = services.list_items(db, principal=principal, search=search, page=page, page_size=page_size)
    return schemas.ItemPage.model_validate(result)


@router.post("", response_model=schemas.ItemRead, status_code=status.HTTP_201_CREATED)
def create_item(
    payload: schemas.ItemCreate,
    db: Session = Depends(get_write_db),
    principal: Principal = Depends(get_current_principal),
):
    item = services.create_item(db, principal=principal, payload=payload)
    db.refresh(item)
    return item


@router.get("/{item_id}", response_model=schemas.ItemRead)
def get_item(
    item_id: str,
    db: Session = Depends(get_read_db),
    principal: Principal = Depends(get_current_principal),
):
    return services.get_item(db, principal=principal, item_id=item_id)


@router.put("/{item_id}", response_model=schemas.ItemRead)
@router.patch("/{item_id}", response_model=schemas.ItemRead)
def update_item(
    item_id: str,
    payload: schemas.ItemUpdate,
    db: Session = Depends(get_write_db),
    principal: Principal = Depends(get_current_principal),
):
    item = services.update_item(db, principal=principal, item_id=item_id, payload=payload)
    db.refresh(item)
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: str,
    db: Session = Depends(get_write_db),
    principal: Principal = Depends(get_current_principal),
):
    services.delete_item(db, principal=principal, item_id=item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
