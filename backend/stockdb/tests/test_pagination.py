from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from stockdb.apps.inventory import models as inventory_models
from stockdb.pagination import (
    DEFAULT_PAGE_SIZE,
    Page,
    normalize_page,
    normalize_page_size,
    paginate,
    total_pages_for,
)
from stockdb.utils.identifiers import generate_uuid7

ORDER = (inventory_models.Item.created_at.asc(), inventory_models.Item.id.asc())


def _seed(db, count):
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for index in range(count):
        created = start + timedelta(minutes=index)
        db.add(
            inventory_models.Item(
                id=generate_uuid7(),
                name=f"Item {index:03d}",
                sku=f"SKU-{index:03d}",
                quantity=index,
                price=Decimal("1.00"),
                created_at=created,
                updated_at=created,
            )
        )
    db.commit()


@pytest.mark.parametrize("raw, expected", [(None, 1), (0, 1), (-4, 1), (1, 1), (7, 7)])
def test_normalize_page(raw, expected):
    assert normalize_page(raw) == expected


@pytest.mark.parametrize("raw, expected", [(None, 20), (0, 20), (101, 20), (1, 1), (100, 100), (35, 35)])
def test_normalize_page_size(raw, expected):
    assert normalize_page_size(raw) == expected


@pytest.mark.parametrize("total, expected", [(0, 1), (1, 1), (20, 1), (21, 2), (45, 3)])
def test_total_pages_never_below_one(total, expected):
    assert total_pages_for(total, DEFAULT_PAGE_SIZE) == expected


def test_pages_partition_the_result_set(db_session):
    _seed(db_session, 45)
    query = db_session.query(inventory_models.Item)

    seen = []
    for number in (1, 2, 3):
        page = paginate(query, order_by=ORDER, page=number)
        assert page.total_items == 45
        assert page.total_pages == 3
        seen.extend(item.sku for item in page.items)

    assert len(seen) == 45
    assert seen == sorted(seen)
    assert len(set(seen)) == 45


def test_page_past_the_end_is_empty_and_echoed(db_session):
    _seed(db_session, 5)
    page = paginate(db_session.query(inventory_models.Item), order_by=ORDER, page=9)

    assert page.items == []
    assert page.page == 9
    assert page.total_pages == 1
    assert page.total_items == 5


def test_empty_set_still_has_one_page(db_session):
    page = paginate(db_session.query(inventory_models.Item), order_by=ORDER)
    assert page.items == []
    assert page.page == 1
    assert page.total_pages == 1


def test_count_respects_filters(db_session):
    _seed(db_session, 12)
    query = db_session.query(inventory_models.Item).filter(inventory_models.Item.quantity >= 10)
    page = paginate(query, order_by=ORDER, page_size=0)

    assert page.page_size == DEFAULT_PAGE_SIZE
    assert page.total_items == 2
    assert [item.sku for item in page.items] == ["SKU-010", "SKU-011"]


def test_page_map_keeps_counters():
    page = Page(items=[1, 2], page=2, page_size=2, total_items=4, total_pages=2)
    mapped = page.map(str)
    assert mapped.items == ["1", "2"]
    assert (mapped.page, mapped.total_items, mapped.total_pages) == (2, 4, 2)
