#!/usr/bin/env python3
"""
Database Seeding Script - Warehouse back office
Seed demo categories and products for local testing
"""

import csv
import os
from decimal import Decimal
from pathlib import Path

DEFAULT_CATEGORIES = [
    {"title": "Warehouse", "row": "1", "icon": "warehouse"},
    {"title": "Cash desk", "row": "1", "icon": "wallet"},
    {"title": "Aidar", "row": "2", "icon": "person"},
    {"title": "Marat", "row": "2", "icon": "person"},
    {"title": "Residential block 4", "row": "3", "icon": "building"},
    {"title": "Office fit-out", "row": "3", "icon": "building"},
]

DEFAULT_PRODUCTS = [
    {"name": "Cement M500", "category": "Building materials", "unit": "bag", "min_quantity": "20"},
    {"name": "Rebar 12mm", "category": "Metal", "unit": "m", "min_quantity": "100"},
    {"name": "Gypsum board", "category": "Finishing", "unit": "sheet", "min_quantity": "30"},
    {"name": "Self-tapping screw 3.5x25", "category": "Fasteners", "unit": "pcs", "min_quantity": "500"},
]


def read_csv(filepath: str) -> list[dict]:
    """Read a CSV file; a missing file yields no rows."""
    if not os.path.exists(filepath):
        return []
    data = []
    with open(filepath, "r", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for row in reader:
            data.append(row)
    return data


def main():
    """Main function."""
    print("=" * 60)
    print("Database Seeding - Warehouse back office")
    print("=" * 60)

    from backoffice.domain.exceptions import ValidationError
    from backoffice.domain.services import CatalogService
    from backoffice.domain.value_objects import CategoryRow
    from backoffice.infrastructure.database import SessionLocal, init_db
    from backoffice.infrastructure.database.repositories import SqlUnitOfWork

    init_db()
    catalog = CatalogService(SqlUnitOfWork(SessionLocal))

    data_dir = Path(__file__).resolve().parent.parent / "data" / "seed"
    categories = read_csv(str(data_dir / "categories.csv")) or DEFAULT_CATEGORIES
    products = read_csv(str(data_dir / "products.csv")) or DEFAULT_PRODUCTS

    for row in categories:
        try:
            category = catalog.create_category(
                row["title"], CategoryRow(int(row["row"])), icon=row.get("icon") or None
            )
            print(f"✓ Created category: {category.title}")
        except ValidationError as exc:
            print(f"✓ Skipped category: {exc.message}")

    existing = {p.name for p in catalog.list_products()}
    for row in products:
        if row["name"] in existing:
            print(f"✓ Product already exists: {row['name']}")
            continue
        product = catalog.create_product(
            row["name"],
            category=row.get("category", ""),
            unit=row.get("unit") or "pcs",
            min_quantity=Decimal(row.get("min_quantity") or "0"),
        )
        print(f"✓ Created product: {product.name}")

    print("=" * 60)
    print("Seeding complete")


if __name__ == "__main__":
    main()
