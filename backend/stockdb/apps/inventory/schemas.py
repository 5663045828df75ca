from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, List, Optional

from pydantic import BaseModel, Field, StrictInt, field_validator

from ...utils.clock import ensure_utc

CENT = Decimal("0.01")
MAX_PRICE = Decimal("10000000000")  # Numeric(12, 2)


def parse_price(value: Any) -> Decimal:
    """
    Parse a monetary value into a Decimal with two fractional digits.

    Accepts numbers and numeric strings. Anything else is rejected rather
    than defaulted.
    """
    if isinstance(value, bool):
        raise ValueError("price must be a decimal number")
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError("price must be a decimal number")
    if not price.is_finite():
        raise ValueError("price must be a decimal number")
    if price < 0:
        raise ValueError("price must not be negative")
    price = price.quantize(CENT, rounding=ROUND_HALF_UP)
    if price >= MAX_PRICE:
        raise ValueError("price is too large")
    return price


def _strip(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


class ItemCreate(BaseModel):
    name: str = Field(..., max_length=255)
    sku: str = Field(..., max_length=64)
    quantity: StrictInt = Field(..., ge=0)
    price: Decimal
    location: Optional[str] = Field(default=None, max_length=128)

    @field_validator("name", "sku", "location", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        return _strip(value)

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> Decimal:
        if value is None:
            raise ValueError("price is required")
        return parse_price(value)


class ItemUpdate(BaseModel):
    """
    Partial update. Only fields present in the request are applied;
    `location: null` clears the location.
    """

    name: Optional[str] = Field(default=None, max_length=255)
    sku: Optional[str] = Field(default=None, max_length=64)
    quantity: Optional[StrictInt] = Field(default=None, ge=0)
    price: Optional[Decimal] = None
    location: Optional[str] = Field(default=None, max_length=128)

    @field_validator("name", "sku", "location", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        return _strip(value)

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> Optional[Decimal]:
        if value is None:
            return None
        return parse_price(value)


class ItemRead(BaseModel):
    id: str
    name: str
    sku: str
    quantity: int
    price: Decimal
    location: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_validator("created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class ItemPage(BaseModel):
    items: List[ItemRead]
    page: int
    page_size: int
    total_items: int
    total_pages: int

    class Config:
        from_attributes = True
