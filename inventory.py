"""
Product lookups used at checkout, and the catalog CRUD behind the admin views.
"""

from __future__ import annotations
import logging
import uuid
from typing import Any, Iterable, List, Optional

from database import DocumentStore
from errors import ProductNotFound
from schemas import Product, ProductCreate, ProductUpdate, Snapshot

logger = logging.getLogger(__name__)

SEED_PRODUCTS: list[dict[str, Any]] = [
    {"name": "Classic Tee", "quantity": 120, "price": 19.99, "image": "https://picsum.photos/320/250?shirt"},
    {"name": "Canvas Tote", "quantity": 80, "price": 24.5, "image": "https://picsum.photos/320/250?bag"},
    {"name": "Ceramic Mug", "quantity": 200, "price": 12.0, "image": "https://picsum.photos/320/250?mug"},
    {"name": "Wool Beanie", "quantity": 45, "price": 29.0, "image": "https://picsum.photos/320/250?hat"},
]


def find_product(snapshot: Snapshot, product_id: str) -> Optional[Product]:
    """Return a copy of the product, or None. Write changes back with replace_products."""
    for product in snapshot.products:
        if product.product_id == product_id:
            return product.model_copy()
    return None


def replace_products(snapshot: Snapshot, updated: Iterable[Product]) -> None:
    by_id = {p.product_id: p for p in updated}
    snapshot.products = [by_id.get(p.product_id, p) for p in snapshot.products]


async def list_products(store: DocumentStore) -> List[Product]:
    snapshot = await store.read()
    return snapshot.products


async def get_product(store: DocumentStore, product_id: str) -> Product:
    snapshot = await store.read()
    product = find_product(snapshot, product_id)
    if product is None:
        raise ProductNotFound(product_id)
    return product


async def create_product(store: DocumentStore, data: ProductCreate) -> Product:
    product = Product(product_id=str(uuid.uuid4()), **data.model_dump())
    async with store.lock:
        snapshot = await store.read()
        snapshot.products.append(product)
        await store.write(snapshot)
    logger.info("Created product %s (%s)", product.product_id, product.name)
    return product


async def update_product(store: DocumentStore, product_id: str, updates: ProductUpdate) -> Product:
    async with store.lock:
        snapshot = await store.read()
        product = find_product(snapshot, product_id)
        if product is None:
            raise ProductNotFound(product_id)
        product = product.model_copy(update=updates.model_dump(exclude_unset=True, exclude_none=True))
        replace_products(snapshot, [product])
        await store.write(snapshot)
    return product


async def delete_product(store: DocumentStore, product_id: str) -> Product:
    async with store.lock:
        snapshot = await store.read()
        product = find_product(snapshot, product_id)
        if product is None:
            raise ProductNotFound(product_id)
        snapshot.products = [p for p in snapshot.products if p.product_id != product_id]
        await store.write(snapshot)
    logger.info("Deleted product %s", product_id)
    return product


async def seed_products(store: DocumentStore) -> int:
    """Insert the sample catalog if there are no products yet."""
    async with store.lock:
        snapshot = await store.read()
        if snapshot.products:
            return 0
        for p in SEED_PRODUCTS:
            snapshot.products.append(Product(product_id=str(uuid.uuid4()), **p))
        await store.write(snapshot)
    return len(SEED_PRODUCTS)
