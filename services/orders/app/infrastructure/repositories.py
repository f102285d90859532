from sqlalchemy import exists, select
from sqlalchemy.orm import Session
from typing import Collection, Optional
import uuid

from app.domain.models import Category, Order, Product, Store

class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, order_id: uuid.UUID, for_update: bool = False) -> Optional[Order]:
        """Load an order with its lines.

        ``for_update`` takes a row lock (``SELECT ... FOR UPDATE``) and reloads
        any copy already in the session.
        """
        stmt = select(Order).where(Order.id == order_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.db.scalars(stmt).first()

    def add(self, order: Order) -> None:
        self.db.add(order)

class CatalogRepository:
    """Read-only lookups against catalog reference data."""

    def __init__(self, db: Session):
        self.db = db

    def get_store(self, store_id: uuid.UUID) -> Optional[Store]:
        return self.db.get(Store, store_id)

    def find_products(self, store_id: uuid.UUID, product_ids: Collection[uuid.UUID]) -> dict[uuid.UUID, Product]:
        if not product_ids:
            return {}
        products = self.db.scalars(
            select(Product).where(Product.store_id == store_id, Product.id.in_(list(product_ids)))
        ).all()
        return {product.id: product for product in products}

    def category_exists(self, category_id: uuid.UUID) -> bool:
        return bool(self.db.scalar(select(exists().where(Category.id == category_id))))
