"""Filtered, paginated order listings for stores and customers."""
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session, lazyload
from datetime import date, datetime, time, timedelta, timezone
import uuid

from app.application.schemas import CustomerOrderFilter, OrderPage, OrderRead, PageRequest, StoreOrderFilter
from app.domain.enums import SortOption
from app.domain.models import Order, Store

SORT_ORDERINGS = {
    SortOption.LATEST: (Order.created_at.desc(), Order.id),
    SortOption.OLDEST: (Order.created_at.asc(), Order.id),
    SortOption.PRICE_HIGH: (Order.total_price.desc(), Order.created_at.desc(), Order.id),
    SortOption.PRICE_LOW: (Order.total_price.asc(), Order.created_at.desc(), Order.id),
}

def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)

def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

class OrderQueryRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_store_orders(self, page: PageRequest, store_id: uuid.UUID, filters: StoreOrderFilter) -> OrderPage:
        stmt = select(Order).where(Order.store_id == store_id)
        return self._paginate(self._apply_filters(stmt, filters), page, filters.sort_option)

    def find_customer_orders(self, page: PageRequest, customer_id: uuid.UUID, filters: CustomerOrderFilter) -> OrderPage:
        stmt = select(Order).where(Order.customer_id == customer_id)
        if filters.store_name or filters.category_id:
            stmt = stmt.join(Store, Store.id == Order.store_id)
        if filters.store_name:
            stmt = stmt.where(Store.name.ilike(f"%{_escape_like(filters.store_name)}%", escape="\\"))
        if filters.category_id:
            stmt = stmt.where(Store.category_id == filters.category_id)
        return self._paginate(self._apply_filters(stmt, filters), page, filters.sort_option)

    @staticmethod
    def _apply_filters(stmt: Select, filters: StoreOrderFilter) -> Select:
        if filters.order_type:
            stmt = stmt.where(Order.order_type == filters.order_type)
        if filters.status:
            stmt = stmt.where(Order.status == filters.status)
        # Both ends of the date range are inclusive, in UTC days
        if filters.start_date:
            stmt = stmt.where(Order.created_at >= _start_of_day(filters.start_date))
        if filters.end_date:
            stmt = stmt.where(Order.created_at < _start_of_day(filters.end_date + timedelta(days=1)))
        return stmt

    def _paginate(self, stmt: Select, page: PageRequest, sort_option: SortOption) -> OrderPage:
        total = self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        orders = self.db.scalars(
            stmt.options(lazyload(Order.lines))
            .order_by(*SORT_ORDERINGS[sort_option])
            .offset((page.page - 1) * page.size)
            .limit(page.size)
        ).all()
        return OrderPage(
            items=[OrderRead.model_validate(order) for order in orders],
            page=page.page,
            size=page.size,
            total_items=total,
            total_pages=(total + page.size - 1) // page.size,
        )
