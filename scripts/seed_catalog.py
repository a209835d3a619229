#!/usr/bin/env python3
"""Seed the database with sample services and inventory."""
import sys
from decimal import Decimal
from pathlib import Path

# Add the parent directory to the path so we can import the app
sys.path.insert(0, str(Path(__file__).parent.parent))

from salon import create_app
from salon.extensions import db
from salon.models import InventoryItem, Service

SAMPLE_SERVICES = [
    {"category": "Hair", "sub_category": "Haircut", "duration": "1h", "price": "50.00"},
    {"category": "Hair", "sub_category": "Coloring", "duration": "2h 30m", "price": "120.00"},
    {"category": "Nails", "sub_category": "Manicure", "duration": "45m", "price": "35.00"},
    {"category": "Skin", "sub_category": "Facial", "duration": "1h 15m", "price": "80.00"},
]

SAMPLE_INVENTORY = [
    {"item_name": "Moisturizing Shampoo", "category": "Hair Care", "quantity": 40, "price": "18.00"},
    {"item_name": "Nail Polish Remover", "category": "Nails", "quantity": 8, "price": "6.50"},
    {"item_name": "Facial Mask", "category": "Skin Care", "quantity": 12, "price": "9.99"},
]


def seed_catalog():
    app = create_app()

    with app.app_context():
        db.create_all()

        if Service.query.count() > 0:
            print("⏭️  Services already present. Skipping...")
        else:
            for number, data in enumerate(SAMPLE_SERVICES, start=1):
                db.session.add(Service(
                    service_id=f"service{number}",
                    category=data["category"],
                    sub_category=data["sub_category"],
                    duration=data["duration"],
                    price=Decimal(data["price"]),
                    available=True,
                ))
                print(f"  ✓ Added service: {data['category']} / {data['sub_category']}")

        if InventoryItem.query.count() > 0:
            print("⏭️  Inventory already present. Skipping...")
        else:
            for data in SAMPLE_INVENTORY:
                db.session.add(InventoryItem(
                    item_name=data["item_name"],
                    category=data["category"],
                    quantity=data["quantity"],
                    price=Decimal(data["price"]),
                    supplier_name="Beauty Supplies Co",
                    supplier_email="orders@beautysupplies.example",
                ))
                print(f"  ✓ Added inventory: {data['item_name']} ({data['quantity']} units)")

        db.session.commit()
        print("\n✅ Catalog seeded successfully!")


if __name__ == "__main__":
    seed_catalog()
