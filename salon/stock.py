"""Low-stock alerts and guarded stock retrieval.

The server derives alerts from the inventory snapshot. ``mark_read``,
``dismiss`` and ``unread_count`` are client-side helpers exported for API
consumers: read and dismissed state is kept by the caller and never stored.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Iterable

from .errors import NotFoundError, ValidationError
from .extensions import db
from .models import InventoryItem

LOW_STOCK_THRESHOLD = 10


@dataclass(frozen=True)
class StockAlert:
    item_id: str
    item_name: str
    quantity: int
    timestamp: datetime
    read: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "itemId": self.item_id,
            "itemName": self.item_name,
            "quantity": self.quantity,
            "read": self.read,
            "timestamp": self.timestamp.isoformat(),
        }


def derive_low_stock_alerts(
    items: Iterable[InventoryItem],
    threshold: int = LOW_STOCK_THRESHOLD,
    now: datetime | None = None,
) -> list[StockAlert]:
    """One unread alert per item whose quantity is at or below ``threshold``.

    Alerts are derived from the snapshot on every call and never stored.
    """
    now = now or datetime.now(timezone.utc)
    return [
        StockAlert(
            item_id=item.id,
            item_name=item.item_name,
            quantity=item.quantity,
            timestamp=now,
        )
        for item in items
        if item.quantity is not None and item.quantity <= threshold
    ]


def mark_read(alerts: Iterable[StockAlert], item_id: str) -> tuple[StockAlert, ...]:
    return tuple(replace(a, read=True) if a.item_id == item_id else a for a in alerts)


def dismiss(alerts: Iterable[StockAlert], item_id: str) -> tuple[StockAlert, ...]:
    return tuple(a for a in alerts if a.item_id != item_id)


def unread_count(alerts: Iterable[StockAlert]) -> int:
    return sum(1 for a in alerts if not a.read)


def retrieve_stock(item_id: str, quantity) -> InventoryItem:
    """Take ``quantity`` units out of stock.

    The decrement is a single conditional UPDATE so two concurrent
    retrievals can never drive the stored quantity below zero. The caller
    owns the commit.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity must be a positive integer", field="quantity")
    if quantity <= 0:
        raise ValidationError("quantity must be a positive integer", field="quantity")

    updated = (
        InventoryItem.query
        .filter(InventoryItem.id == item_id, InventoryItem.quantity >= quantity)
        .update(
            {InventoryItem.quantity: InventoryItem.quantity - quantity},
            synchronize_session=False,
        )
    )
    if not updated:
        item = db.session.get(InventoryItem, item_id)
        if item is None:
            raise NotFoundError("Inventory not found")
        raise ValidationError(
            f"Requested quantity {quantity} exceeds available quantity {item.quantity}",
            field="quantity",
        )

    item = db.session.get(InventoryItem, item_id)
    db.session.refresh(item)
    return item
