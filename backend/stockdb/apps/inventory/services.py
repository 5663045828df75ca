from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import DuplicateSku, NotFound, StockError, StorageError, ValidationFailed
from ...pagination import Page, paginate
from ...policy import Operation, ensure_allowed
from ...security import Principal
from ...utils import clock
from ...utils.identifiers import generate_uuid7, is_valid_item_id
from ..audit import diff as diff_engine
from ..audit import services as audit_services
from . import models, schemas
from .locks import item_locks

logger = logging.getLogger(__name__)

# Creation order never changes, so paging on it is stable while items are edited.
ITEM_ORDER = (models.Item.created_at.asc(), models.Item.id.asc())


def _require_text(value: Optional[str], field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationFailed(
            f"{field} must not be empty.",
            fields=[{"field": field, "reason": "required"}],
        )
    return text


def _require_quantity(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationFailed(
            "quantity must be a non-negative integer.",
            fields=[{"field": "quantity", "reason": "invalid"}],
        )
    return value


def _require_item_id(item_id: str) -> str:
    if not is_valid_item_id(item_id):
        raise ValidationFailed("Invalid item id.", fields=[{"field": "item_id", "reason": "not a UUID"}])
    return str(item_id)


def _ensure_sku_available(db: Session, sku: str, *, exclude_id: Optional[str] = None) -> None:
    query = db.query(models.Item.id).filter(models.Item.sku == sku)
    if exclude_id is not None:
        query = query.filter(models.Item.id != exclude_id)
    if query.first() is not None:
        raise DuplicateSku(
            "Item with this SKU already exists.",
            fields=[{"field": "sku", "reason": "duplicate"}],
        )


def _validated_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Check the supplied fields of a partial update before anything is applied."""
    if not changes:
        raise ValidationFailed("No changes provided.")
    cleaned: Dict[str, Any] = {}
    for field, value in changes.items():
        if field in ("name", "sku"):
            cleaned[field] = _require_text(value, field)
        elif field == "quantity":
            cleaned[field] = _require_quantity(value)
        elif field == "price":
            if value is None:
                raise ValidationFailed("price must not be null.", fields=[{"field": "price", "reason": "required"}])
            cleaned[field] = value
        elif field == "location":
            cleaned[field] = value
    return cleaned


def _is_sku_conflict(exc: IntegrityError) -> bool:
    # Postgres names the constraint; SQLite names the column.
    message = str(exc.orig)
    return models.SKU_CONSTRAINT in message or "items.sku" in message


@contextmanager
def _mutation(db: Session, *, action: str, item_id: Optional[str], actor: str) -> Iterator[None]:
    """
    One item mutation and its audit entry, committed together or not at all.
    """
    try:
        yield
        db.commit()
    except StockError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        if not _is_sku_conflict(exc):
            logger.exception(
                "Item mutation violated a constraint; rolled back",
                extra={"action": action, "item_id": item_id, "actor": actor},
            )
            raise StorageError("The change could not be stored.") from exc
        # Lost a race with a concurrent insert of the same SKU.
        raise DuplicateSku(
            "Item with this SKU already exists.",
            fields=[{"field": "sku", "reason": "duplicate"}],
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(
            "Item mutation failed; rolled back",
            extra={"action": action, "item_id": item_id, "actor": actor},
        )
        raise StorageError("The change could not be stored.") from exc


def _load_for_update(db: Session, item_id: str) -> models.Item:
    item = (
        db.query(models.Item)
        .filter(models.Item.id == item_id)
        .with_for_update()
        .first()
    )
    if item is None:
        raise NotFound("Item not found.")
    return item


def get_item(db: Session, *, principal: Principal, item_id: str) -> models.Item:
    ensure_allowed(principal.role, Operation.READ_ITEM, actor=principal.username)
    _require_item_id(item_id)
    item = db.query(models.Item).filter(models.Item.id == item_id).first()
    if item is None:
        raise NotFound("Item not found.")
    return item


def list_items(
    db: Session,
    *,
    principal: Principal,
    search: Optional[str] = None,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
) -> Page[models.Item]:
    """
    Items in creation order. `search` matches name or SKU as a
    case-insensitive substring; wildcard characters are taken literally.
    """
    ensure_allowed(principal.role, Operation.LIST_ITEMS, actor=principal.username)
    query = db.query(models.Item)
    term = (search or "").strip().lower()
    if term:
        query = query.filter(
            or_(
                func.lower(models.Item.name).contains(term, autoescape=True),
                func.lower(models.Item.sku).contains(term, autoescape=True),
            )
        )
    return paginate(query, order_by=ITEM_ORDER, page=page, page_size=page_size)


def create_item(db: Session, *, principal: Principal, payload: schemas.ItemCreate) -> models.Item:
    ensure_allowed(principal.role, Operation.CREATE_ITEM, actor=principal.username)

    name = _require_text(payload.name, "name")
    sku = _require_text(payload.sku, "sku")
    quantity = _require_quantity(payload.quantity)

    item_id = generate_uuid7()
    with _mutation(db, action="INSERT", item_id=item_id, actor=principal.username):
        _ensure_sku_available(db, sku)
        now = clock.utcnow()
        item = models.Item(
            id=item_id,
            name=name,
            sku=sku,
            quantity=quantity,
            price=payload.price,
            location=payload.location,
            created_at=now,
            updated_at=now,
        )
        db.add(item)
        db.flush()

        after = diff_engine.snapshot(item)
        audit_services.append_entry(
            db,
            item_id=item.id,
            result=diff_engine.diff(None, after),
            principal=principal,
            new_data=after,
        )

    logger.info("Item created", extra={"item_id": item_id, "sku": sku, "actor": principal.username})
    return item


def update_item(
    db: Session,
    *,
    principal: Principal,
    item_id: str,
    payload: schemas.ItemUpdate,
) -> models.Item:
    """
    Apply the supplied fields only. Sending values equal to the current
    ones is accepted and logged as an UPDATE with an empty diff.
    """
    ensure_allowed(principal.role, Operation.UPDATE_ITEM, actor=principal.username)
    _require_item_id(item_id)
    changes = _validated_changes(payload.model_dump(exclude_unset=True))

    with item_locks.hold(item_id):
        with _mutation(db, action="UPDATE", item_id=item_id, actor=principal.username):
            item = _load_for_update(db, item_id)
            if "sku" in changes and changes["sku"] != item.sku:
                _ensure_sku_available(db, changes["sku"], exclude_id=item.id)

            before = diff_engine.snapshot(item)
            for field, value in changes.items():
                setattr(item, field, value)
            item.updated_at = clock.utcnow()
            db.flush()
            after = diff_engine.snapshot(item)

            result = diff_engine.diff(before, after)
            audit_services.append_entry(
                db,
                item_id=item.id,
                result=result,
                principal=principal,
                old_data=before,
                new_data=after,
            )

    logger.info(
        "Item updated",
        extra={"item_id": item_id, "fields": sorted(result.changes or {}), "actor": principal.username},
    )
    return item


def delete_item(db: Session, *, principal: Principal, item_id: str) -> None:
    ensure_allowed(principal.role, Operation.DELETE_ITEM, actor=principal.username)
    _require_item_id(item_id)

    with item_locks.hold(item_id):
        with _mutation(db, action="DELETE", item_id=item_id, actor=principal.username):
            item = _load_for_update(db, item_id)
            before = diff_engine.snapshot(item)
            db.delete(item)
            db.flush()
            audit_services.append_entry(
                db,
                item_id=item_id,
                result=diff_engine.diff(before, None),
                principal=principal,
                old_data=before,
            )

    logger.info("Item deleted", extra={"item_id": item_id, "actor": principal.username})
