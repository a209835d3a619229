"""Tests for low-stock alerts and stock retrieval."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from salon.errors import NotFoundError, ValidationError
from salon.extensions import db
from salon.models import InventoryItem
from salon.stock import (LOW_STOCK_THRESHOLD, derive_low_stock_alerts, dismiss, mark_read, retrieve_stock,
                         unread_count)


def _item(name: str, quantity: int, item_id: str | None = None) -> InventoryItem:
    return InventoryItem(
        id=item_id or name.lower(),
        item_name=name,
        category="Hair Care",
        quantity=quantity,
        price=Decimal("10.00"),
        supplier_name="Acme",
        supplier_email="acme@example.com",
    )


def test_threshold_is_ten() -> None:
    assert LOW_STOCK_THRESHOLD == 10


def test_alerts_include_boundary_and_exclude_above() -> None:
    now = datetime(2030, 6, 15, tzinfo=timezone.utc)
    items = [_item("Shampoo", 11), _item("Gel", 10), _item("Mask", 0), _item("Oil", 3)]

    alerts = derive_low_stock_alerts(items, now=now)

    assert [a.item_name for a in alerts] == ["Gel", "Mask", "Oil"]
    assert all(a.read is False for a in alerts)
    assert all(a.timestamp == now for a in alerts)
    assert alerts[0].to_dict() == {
        "itemId": "gel",
        "itemName": "Gel",
        "quantity": 10,
        "read": False,
        "timestamp": now.isoformat(),
    }


def test_alerts_respect_custom_threshold() -> None:
    alerts = derive_low_stock_alerts([_item("Shampoo", 11), _item("Gel", 25)], threshold=20)
    assert [a.item_name for a in alerts] == ["Shampoo"]


def test_read_and_dismiss_return_new_state() -> None:
    alerts = tuple(derive_low_stock_alerts([_item("Gel", 1), _item("Oil", 2)]))

    read = mark_read(alerts, "gel")
    assert unread_count(alerts) == 2
    assert unread_count(read) == 1
    assert read[0].read is True

    remaining = dismiss(read, "gel")
    assert [a.item_id for a in remaining] == ["oil"]
    assert len(alerts) == 2


def test_retrieve_more_than_available_is_rejected(app) -> None:
    with app.app_context():
        db.session.add(_item("Gel", 5))
        db.session.commit()

        with pytest.raises(ValidationError):
            retrieve_stock("gel", 6)
        db.session.rollback()

        assert db.session.get(InventoryItem, "gel").quantity == 5


def test_retrieve_exact_quantity_leaves_zero(app) -> None:
    with app.app_context():
        db.session.add(_item("Gel", 5))
        db.session.commit()

        item = retrieve_stock("gel", 5)
        db.session.commit()

        assert item.quantity == 0


@pytest.mark.parametrize("quantity", [0, -1, True, "2", 1.5])
def test_retrieve_rejects_non_positive_or_non_integer(app, quantity) -> None:
    with app.app_context():
        with pytest.raises(ValidationError):
            retrieve_stock("gel", quantity)


def test_retrieve_unknown_item(app) -> None:
    with app.app_context():
        with pytest.raises(NotFoundError):
            retrieve_stock("missing", 1)
