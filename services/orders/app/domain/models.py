from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import String, ForeignKey, Numeric, DateTime, Integer, Uuid, CheckConstraint, Enum as SAEnum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional, Sequence
import uuid

from .enums import OrderStatus, OrderType, TERMINAL_STATUSES, can_transition
from .errors import AlreadyCancelled, CancellationWindowExpired, InvalidState


class Base(DeclarativeBase):
    pass


def as_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes; every timestamp is written in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class CancellationRecord:
    at: datetime
    by: uuid.UUID


# Catalog reference data, owned by the catalog side of the platform (read-only here)

class Category(Base):
    __tablename__ = "categories"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(50), unique=True)


class Store(Base):
    __tablename__ = "stores"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), index=True)
    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("categories.id"), nullable=True)


class Product(Base):
    __tablename__ = "products"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    store_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("stores.id"), index=True)
    name: Mapped[str] = mapped_column(String(100))
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2))


class Order(Base):
    """A customer's order against one store.

    Lines are owned by and loaded with the order. Store, customer and the
    canceling user are referenced by id only.
    """
    __tablename__ = "orders"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_number: Mapped[str] = mapped_column(String(48), unique=True, index=True)
    # Store id and customer id (no FK - owned by other modules)
    store_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    customer_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    order_type: Mapped[OrderType] = mapped_column(SAEnum(OrderType, native_enum=False, length=20))
    delivery_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    request_note: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    status: Mapped[OrderStatus] = mapped_column(SAEnum(OrderStatus, native_enum=False, length=20), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    # Soft delete: both set together or neither
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    lines: Mapped[list["OrderLine"]] = relationship(
        "OrderLine",
        cascade="all, delete-orphan",
        order_by="OrderLine.line_no",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("total_price >= 0", name="ck_orders_total_price_non_negative"),
        CheckConstraint(
            "(cancelled_at IS NULL) = (cancelled_by IS NULL)",
            name="ck_orders_cancellation_complete",
        ),
    )
    __mapper_args__ = {"version_id_col": version}

    @classmethod
    def place(
        cls,
        *,
        store_id: uuid.UUID,
        customer_id: uuid.UUID,
        order_type: OrderType,
        delivery_address: Optional[str],
        request_note: Optional[str],
        lines: Sequence["OrderLine"],
        total_price: Decimal,
        now: datetime,
    ) -> "Order":
        """Build a new PENDING order owning ``lines``."""
        if total_price != sum((line.line_total for line in lines), Decimal("0")):
            raise ValueError("order total does not match the sum of its lines")
        order_id = uuid.uuid4()
        return cls(
            id=order_id,
            order_number=f"ORD-{now:%Y%m%d}-{order_id.hex.upper()}",
            store_id=store_id,
            customer_id=customer_id,
            order_type=order_type,
            delivery_address=delivery_address,
            request_note=request_note,
            total_price=total_price,
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now,
            lines=list(lines),
        )

    @property
    def cancellation(self) -> Optional[CancellationRecord]:
        if self.cancelled_at is None:
            return None
        return CancellationRecord(at=as_utc(self.cancelled_at), by=self.cancelled_by)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def elapsed_since_creation(self, now: datetime) -> timedelta:
        return as_utc(now) - as_utc(self.created_at)

    def transition_to(self, target: OrderStatus, now: datetime) -> None:
        if not can_transition(self.status, target):
            raise InvalidState(
                order_id=self.id,
                current_status=self.status,
                requested_status=target,
                terminal=self.is_terminal,
            )
        self.status = target
        self.updated_at = now

    def cancel(self, by: uuid.UUID, now: datetime, window: Optional[timedelta] = None) -> CancellationRecord:
        """Soft-delete the order.

        ``window`` bounds self-service cancellation measured from creation;
        pass None for staff cancellations, which have no time limit.
        """
        if self.cancellation is not None or self.status == OrderStatus.CANCELLED:
            raise AlreadyCancelled(order_id=self.id, cancelled_at=self.cancelled_at)
        if self.is_terminal:
            raise InvalidState(
                order_id=self.id,
                current_status=self.status,
                requested_status=OrderStatus.CANCELLED,
                terminal=True,
            )
        if window is not None:
            elapsed = self.elapsed_since_creation(now)
            if elapsed > window:
                raise CancellationWindowExpired(
                    order_id=self.id,
                    created_at=as_utc(self.created_at),
                    elapsed_seconds=int(elapsed.total_seconds()),
                    window_seconds=int(window.total_seconds()),
                )
        self.status = OrderStatus.CANCELLED
        self.cancelled_at = now
        self.cancelled_by = by
        self.updated_at = now
        return self.cancellation


class OrderLine(Base):
    __tablename__ = "order_lines"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("orders.id"), index=True)
    line_no: Mapped[int] = mapped_column(Integer)
    # Product id only (no FK); name and price are captured at order time
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    product_name: Mapped[str] = mapped_column(String(100))
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    quantity: Mapped[int] = mapped_column(Integer)
    line_total: Mapped[Decimal] = mapped_column(Numeric(12, 2))

    __table_args__ = (CheckConstraint("quantity > 0", name="ck_order_lines_quantity_positive"),)

    @classmethod
    def priced(cls, *, line_no: int, product: Product, quantity: int) -> "OrderLine":
        return cls(
            id=uuid.uuid4(),
            line_no=line_no,
            product_id=product.id,
            product_name=product.name,
            unit_price=product.price,
            quantity=quantity,
            line_total=product.price * quantity,
        )
