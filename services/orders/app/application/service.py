from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
import uuid

from app.core_settings import Settings, get_settings
from app.domain.enums import ORDERING_ROLES, STAFF_ROLES, OrderStatus, UserRole
from app.domain.errors import ConcurrentUpdate, Forbidden, NotFound
from app.domain.models import Order
from app.infrastructure.order_queries import OrderQueryRepository
from app.infrastructure.repositories import CatalogRepository, OrderRepository
from shared.core import get_logger
from .line_builder import build_order_lines
from .schemas import CustomerOrderFilter, OrderCreate, OrderPage, PageRequest, StoreOrderFilter
from .security import CurrentUser, require_role

logger = get_logger(__name__)

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class OrderService:
    """Order lifecycle: placement, status progression, cancellation and listings.

    Every mutating call runs as one transaction. Business-rule violations are
    raised as ``OrderServiceError`` subclasses before anything is written.
    """

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        settings = settings or get_settings()
        self.db = db
        self.orders = OrderRepository(db)
        self.catalog = CatalogRepository(db)
        self.queries = OrderQueryRepository(db)
        self.clock = clock
        self.cancellation_window = timedelta(minutes=settings.CANCELLATION_WINDOW_MINUTES)
        self.max_page_size = settings.MAX_PAGE_SIZE

    @contextmanager
    def _unit_of_work(self, order_id: Optional[uuid.UUID] = None):
        try:
            yield
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            raise ConcurrentUpdate(order_id=order_id) from e
        except Exception:
            self.db.rollback()
            raise

    def _load(self, order_id: uuid.UUID, for_update: bool = False) -> Order:
        order = self.orders.get(order_id, for_update=for_update)
        if order is None:
            raise NotFound(resource="order", id=order_id)
        return order

    def place_order(self, data: OrderCreate, user: CurrentUser) -> Order:
        require_role(user, ORDERING_ROLES, "place_order")
        with self._unit_of_work():
            if self.catalog.get_store(data.store_id) is None:
                raise NotFound(resource="store", id=data.store_id)
            priced = build_order_lines(data.store_id, data.products, self.catalog.find_products)
            order = Order.place(
                store_id=data.store_id,
                customer_id=user.id,
                order_type=data.order_type,
                delivery_address=data.delivery_address,
                request_note=data.request_note,
                lines=priced.lines,
                total_price=priced.total,
                now=self.clock(),
            )
            self.orders.add(order)
        logger.info(
            f"Order placed: {order.order_number}",
            extra={'extra_fields': {
                'order_id': order.id,
                'store_id': order.store_id,
                'line_count': len(order.lines),
                'total_price': order.total_price,
            }}
        )
        return order

    def get_order_detail(self, order_id: uuid.UUID, user: Optional[CurrentUser] = None) -> Order:
        order = self._load(order_id)
        if user is not None and user.is_customer and order.customer_id != user.id:
            raise Forbidden(action="get_order_detail", user_id=user.id, order_id=order_id)
        return order

    def update_order_status(self, order_id: uuid.UUID, new_status: OrderStatus, user: CurrentUser) -> Order:
        require_role(user, STAFF_ROLES, "update_order_status")
        with self._unit_of_work(order_id):
            order = self._load(order_id, for_update=True)
            previous = order.status
            order.transition_to(new_status, self.clock())
        logger.info(
            f"Order status changed: {previous.value} -> {new_status.value}",
            extra={'extra_fields': {'order_id': order_id, 'from': previous, 'to': new_status}}
        )
        return order

    def cancel_order(self, order_id: uuid.UUID, user: CurrentUser) -> Order:
        """Soft-cancel an order.

        Customers may only cancel their own orders, and only within the
        cancellation window after creation. Staff roles have no time limit.
        """
        with self._unit_of_work(order_id):
            order = self._load(order_id, for_update=True)
            window = None
            if user.is_customer:
                if order.customer_id != user.id:
                    raise Forbidden(action="cancel_order", user_id=user.id, order_id=order_id)
                window = self.cancellation_window
            order.cancel(user.id, self.clock(), window)
        logger.info(
            "Order cancelled",
            extra={'extra_fields': {'order_id': order_id, 'cancelled_by': user.id, 'role': user.role}}
        )
        return order

    def list_store_orders(
        self,
        page: PageRequest,
        store_id: uuid.UUID,
        filters: StoreOrderFilter,
        user: CurrentUser,
    ) -> OrderPage:
        require_role(user, STAFF_ROLES, "list_store_orders")
        if self.catalog.get_store(store_id) is None:
            raise NotFound(resource="store", id=store_id)
        return self.queries.find_store_orders(self._bounded(page), store_id, filters)

    def list_customer_orders(self, page: PageRequest, user: CurrentUser, filters: CustomerOrderFilter) -> OrderPage:
        require_role(user, {UserRole.CUSTOMER}, "list_customer_orders")
        if filters.category_id is not None and not self.catalog.category_exists(filters.category_id):
            raise NotFound(resource="category", id=filters.category_id)
        return self.queries.find_customer_orders(self._bounded(page), user.id, filters)

    def _bounded(self, page: PageRequest) -> PageRequest:
        if page.size <= self.max_page_size:
            return page
        return PageRequest(page=page.page, size=self.max_page_size)
