from datetime import date
from decimal import Decimal
import uuid

import pytest

from app.application.schemas import CustomerOrderFilter, PageRequest, StoreOrderFilter
from app.application.security import CurrentUser
from app.domain.enums import OrderStatus, OrderType, SortOption, UserRole
from app.domain.errors import Forbidden, NotFound


@pytest.fixture
def placed(service, clock, catalog, customer, other_customer, owner, order_request):
    """Five orders over three days; clock starts 2024-11-15 12:00 UTC."""
    orders = {}
    orders["a"] = service.place_order(order_request((catalog.kimbap_roll, 1)), customer)
    clock.advance(hours=1)
    orders["b"] = service.place_order(
        order_request((catalog.ramyeon, 2), order_type=OrderType.DELIVERY, address="1 Seoul-ro"), customer
    )
    clock.advance(days=1)
    orders["c"] = service.place_order(order_request((catalog.noodles, 1), store=catalog.wok), customer)
    clock.advance(hours=1)
    orders["d"] = service.place_order(order_request((catalog.kimbap_roll, 5)), other_customer)
    clock.advance(days=1)
    orders["e"] = service.place_order(order_request((catalog.ramyeon, 1)), customer)
    service.update_order_status(orders["e"].id, OrderStatus.ACCEPTED, owner)
    service.cancel_order(orders["a"].id, owner)
    return orders


def ids(page):
    return [item.id for item in page.items]


class TestStoreListing:
    def test_scoped_to_store_latest_first(self, service, catalog, owner, placed):
        page = service.list_store_orders(PageRequest(), catalog.kimbap.id, StoreOrderFilter(), owner)

        assert ids(page) == [placed["e"].id, placed["d"].id, placed["b"].id, placed["a"].id]
        assert page.total_items == 4
        assert page.total_pages == 1

    def test_cancelled_orders_are_listed_and_filterable(self, service, catalog, owner, placed):
        page = service.list_store_orders(
            PageRequest(), catalog.kimbap.id, StoreOrderFilter(status=OrderStatus.CANCELLED), owner
        )
        assert ids(page) == [placed["a"].id]
        assert page.items[0].cancelled_by == owner.id

    def test_filters_by_order_type(self, service, catalog, manager, placed):
        page = service.list_store_orders(
            PageRequest(), catalog.kimbap.id, StoreOrderFilter(order_type=OrderType.DELIVERY), manager
        )
        assert ids(page) == [placed["b"].id]

    def test_date_range_is_inclusive(self, service, catalog, owner, placed):
        filters = StoreOrderFilter(start_date=date(2024, 11, 16), end_date=date(2024, 11, 16))
        page = service.list_store_orders(PageRequest(), catalog.kimbap.id, filters, owner)
        assert ids(page) == [placed["d"].id]

        filters = StoreOrderFilter(start_date=date(2024, 11, 16))
        page = service.list_store_orders(PageRequest(), catalog.kimbap.id, filters, owner)
        assert ids(page) == [placed["e"].id, placed["d"].id]

    @pytest.mark.parametrize("sort_option, expected", [
        (SortOption.OLDEST, ["a", "b", "d", "e"]),
        (SortOption.PRICE_HIGH, ["b", "d", "e", "a"]),
        (SortOption.PRICE_LOW, ["a", "e", "d", "b"]),
    ])
    def test_sort_options(self, service, catalog, owner, placed, sort_option, expected):
        page = service.list_store_orders(
            PageRequest(), catalog.kimbap.id, StoreOrderFilter(sort_option=sort_option), owner
        )
        assert ids(page) == [placed[key].id for key in expected]

    def test_pagination(self, service, catalog, owner, placed):
        first = service.list_store_orders(PageRequest(page=1, size=3), catalog.kimbap.id, StoreOrderFilter(), owner)
        second = service.list_store_orders(PageRequest(page=2, size=3), catalog.kimbap.id, StoreOrderFilter(), owner)

        assert first.total_pages == second.total_pages == 2
        assert ids(first) + ids(second) == [placed[k].id for k in ("e", "d", "b", "a")]

    def test_page_size_is_capped(self, service, catalog, owner, placed, settings):
        page = service.list_store_orders(PageRequest(size=1000), catalog.kimbap.id, StoreOrderFilter(), owner)
        assert page.size == settings.MAX_PAGE_SIZE

    def test_customer_role_is_rejected(self, service, catalog, customer):
        with pytest.raises(Forbidden):
            service.list_store_orders(PageRequest(), catalog.kimbap.id, StoreOrderFilter(), customer)

    def test_unknown_store(self, service, owner):
        with pytest.raises(NotFound):
            service.list_store_orders(PageRequest(), uuid.uuid4(), StoreOrderFilter(), owner)


class TestCustomerListing:
    def test_only_own_orders(self, service, customer, other_customer, placed):
        page = service.list_customer_orders(PageRequest(), customer, CustomerOrderFilter())
        assert ids(page) == [placed[k].id for k in ("e", "c", "b", "a")]

        page = service.list_customer_orders(PageRequest(), other_customer, CustomerOrderFilter())
        assert ids(page) == [placed["d"].id]

    def test_store_name_filter(self, service, customer, placed):
        page = service.list_customer_orders(PageRequest(), customer, CustomerOrderFilter(store_name="wok"))
        assert ids(page) == [placed["c"].id]

    def test_store_name_wildcards_are_literal(self, service, customer, placed):
        page = service.list_customer_orders(PageRequest(), customer, CustomerOrderFilter(store_name="%"))
        assert page.total_items == 0

    def test_category_filter(self, service, catalog, customer, placed):
        page = service.list_customer_orders(
            PageRequest(), customer, CustomerOrderFilter(category_id=catalog.korean.id)
        )
        assert ids(page) == [placed[k].id for k in ("e", "b", "a")]

    def test_status_filter(self, service, customer, placed):
        page = service.list_customer_orders(
            PageRequest(), customer, CustomerOrderFilter(status=OrderStatus.ACCEPTED)
        )
        assert ids(page) == [placed["e"].id]
        assert page.items[0].total_price == Decimal("3500")

    def test_unknown_category_fails_before_query(self, service, customer, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("query must not run")

        monkeypatch.setattr(service.queries, "find_customer_orders", fail)
        with pytest.raises(NotFound) as exc_info:
            service.list_customer_orders(PageRequest(), customer, CustomerOrderFilter(category_id=uuid.uuid4()))
        assert exc_info.value.context["resource"] == "category"

    @pytest.mark.parametrize("role", [UserRole.OWNER, UserRole.MANAGER, UserRole.MASTER])
    def test_staff_roles_are_rejected(self, service, role):
        with pytest.raises(Forbidden):
            service.list_customer_orders(
                PageRequest(), CurrentUser(id=uuid.uuid4(), role=role), CustomerOrderFilter()
            )
