from __future__ import annotations

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)

from ...database import Base
from ...utils.clock import utcnow
from ...utils.identifiers import generate_uuid7

PRICE_SCALE = 2
SKU_CONSTRAINT = "uq_items_sku"


class Item(Base):
    """
    Live stock record. History is not versioned here; it lives only in
    the audit log.
    """

    __tablename__ = "items"
    __table_args__ = (
        UniqueConstraint("sku", name=SKU_CONSTRAINT),
        Index("ix_items_created", "created_at", "id"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7, index=True)
    name = Column(String(255), nullable=False)
    sku = Column(String(64), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(12, PRICE_SCALE, asdecimal=True), nullable=False)
    location = Column(String(128), nullable=True)

    # created_at never changes after insert, so it is safe to page on.
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Item id={self.id} sku={self.sku} quantity={self.quantity}>"
