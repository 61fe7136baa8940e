#!/usr/bin/env python3
"""
Seed the storefront menu.

Safe to run repeatedly: products that already exist are left untouched.

Usage:
    python scripts/seed_catalog.py
"""

import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from db import Database
from models.product import ProductDTO, ProductVariantDTO
from repositories.catalog import CatalogRepository
from utils.transaction_manager import TransactionManager


def _product(product_id: str, name: str, description: str, category: str, image: str,
             variants: list[tuple[str, str]]) -> ProductDTO:
    variant_dtos = [ProductVariantDTO(label=label, price=Decimal(price)) for label, price in variants]
    return ProductDTO(
        id=product_id,
        name=name,
        description=description,
        category=category,
        image=image,
        base_price=min(variant.price for variant in variant_dtos),
        variants=variant_dtos,
    )


MENU = [
    _product("empanadas", "Empanadas", "Delicious handmade empanadas with various fillings", "food",
             "/empanadas.jpg",
             [("Beef", "3.50"), ("Chicken", "3.50"), ("Cheese", "3.00"), ("Spinach & Cheese", "3.25")]),
    _product("churros", "Churros", "Fresh churros with cinnamon sugar", "dessert", "/churros.jpg",
             [("3 pieces", "6.00"), ("5 pieces plain", "9.00"), ("5 pieces dulce de leche stuffed", "12.00")]),
    _product("drinks", "Latin Drinks", "Authentic Latin beverages", "beverage", "/drinks.jpg",
             [("Horchata", "4.00"), ("Jamaica (Hibiscus)", "3.50"), ("Tamarindo", "3.50"), ("Agua Fresca", "3.00")]),
]


async def seed_catalog(database: Database) -> int:
    """Insert missing menu products, returns how many were created."""
    created = 0
    async with TransactionManager.atomic_transaction(database) as session:
        for product in MENU:
            if await CatalogRepository.upsert_product(product, session):
                print(f"✅ Added {product.name} ({len(product.variants)} variants)")
                created += 1
            else:
                print(f"⏭️  {product.name} already present")
    return created


async def main():
    database = Database()
    try:
        await database.create_all()
        created = await seed_catalog(database)
        print(f"🌱 Seeding done, {created} new products")
    except Exception as e:
        print(f"❌ Error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(main())
