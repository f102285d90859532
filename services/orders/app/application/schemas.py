from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
import uuid

from app.domain.enums import OrderStatus, OrderType, SortOption

class OrderLineCreate(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(ge=1)

class OrderCreate(BaseModel):
    store_id: uuid.UUID
    order_type: OrderType
    delivery_address: Optional[str] = Field(None, max_length=255)
    request_note: Optional[str] = Field(None, max_length=200)
    products: list[OrderLineCreate] = Field(min_length=1)

    @model_validator(mode="after")
    def check_delivery_address(self):
        # Pickup orders never carry an address
        if self.order_type != OrderType.DELIVERY:
            self.delivery_address = None
            return self
        if not self.delivery_address or not self.delivery_address.strip():
            raise ValueError("delivery_address is required for DELIVERY orders")
        self.delivery_address = self.delivery_address.strip()
        return self

class OrderStatusUpdate(BaseModel):
    status: OrderStatus

class OrderLineRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal

class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_number: str
    store_id: uuid.UUID
    customer_id: uuid.UUID
    status: OrderStatus
    order_type: OrderType
    delivery_address: Optional[str] = None
    request_note: Optional[str] = None
    total_price: Decimal
    created_at: datetime
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[uuid.UUID] = None

class OrderDetail(OrderRead):
    lines: list[OrderLineRead]

class StoreOrderFilter(BaseModel):
    order_type: Optional[OrderType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[OrderStatus] = None
    sort_option: SortOption = SortOption.LATEST

class CustomerOrderFilter(StoreOrderFilter):
    store_name: Optional[str] = Field(None, max_length=50)
    category_id: Optional[uuid.UUID] = None

class PageRequest(BaseModel):
    page: int = Field(1, ge=1)
    size: int = Field(20, ge=1)

class OrderPage(BaseModel):
    items: list[OrderRead]
    page: int
    size: int
    total_items: int
    total_pages: int
