from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
import uuid

from app.infrastructure.db import get_db
from app.application.service import OrderService
from app.application.schemas import (
    CustomerOrderFilter,
    OrderCreate,
    OrderDetail,
    OrderPage,
    OrderRead,
    OrderStatusUpdate,
    PageRequest,
    StoreOrderFilter,
)
from app.application.security import CurrentUser
from app.core_settings import Settings, get_settings
from app.domain.enums import OrderStatus, OrderType, SortOption
from .auth import get_current_user

router = APIRouter(prefix="/api/v1", tags=["orders"])

def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(db)

def page_request(
    page: int = Query(1, ge=1, description="1-based page number"),
    size: Optional[int] = Query(None, ge=1, description="Page size, capped by MAX_PAGE_SIZE"),
    settings: Settings = Depends(get_settings),
) -> PageRequest:
    return PageRequest(page=page, size=size or settings.DEFAULT_PAGE_SIZE)

def _check_date_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=422, detail="start_date must not be after end_date")

def store_order_filter(
    order_type: Optional[OrderType] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status: Optional[OrderStatus] = Query(None),
    sort_option: SortOption = Query(SortOption.LATEST),
) -> StoreOrderFilter:
    _check_date_range(start_date, end_date)
    return StoreOrderFilter(
        order_type=order_type,
        start_date=start_date,
        end_date=end_date,
        status=status,
        sort_option=sort_option,
    )

def customer_order_filter(
    store_name: Optional[str] = Query(None, max_length=50, description="Substring of the store name"),
    category_id: Optional[uuid.UUID] = Query(None),
    order_type: Optional[OrderType] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status: Optional[OrderStatus] = Query(None),
    sort_option: SortOption = Query(SortOption.LATEST),
) -> CustomerOrderFilter:
    _check_date_range(start_date, end_date)
    return CustomerOrderFilter(
        store_name=store_name,
        category_id=category_id,
        order_type=order_type,
        start_date=start_date,
        end_date=end_date,
        status=status,
        sort_option=sort_option,
    )

@router.post("/orders", response_model=OrderDetail, status_code=201)
def place_order(
    payload: OrderCreate,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return service.place_order(payload, user)

@router.get("/orders", response_model=OrderPage)
def list_customer_orders(
    page: PageRequest = Depends(page_request),
    filters: CustomerOrderFilter = Depends(customer_order_filter),
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """Orders placed by the calling customer."""
    return service.list_customer_orders(page, user, filters)

@router.get("/orders/{order_id}", response_model=OrderDetail)
def get_order(
    order_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return service.get_order_detail(order_id, user)

@router.put("/orders/{order_id}", response_model=OrderRead)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return service.update_order_status(order_id, payload.status, user)

@router.delete("/orders/{order_id}", status_code=204)
def cancel_order(
    order_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    service.cancel_order(order_id, user)
    return Response(status_code=204)

@router.get("/stores/{store_id}/orders", response_model=OrderPage)
def list_store_orders(
    store_id: uuid.UUID,
    page: PageRequest = Depends(page_request),
    filters: StoreOrderFilter = Depends(store_order_filter),
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """Orders placed at a store, for store staff."""
    return service.list_store_orders(page, store_id, filters, user)
