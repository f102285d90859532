from decimal import Decimal
from types import SimpleNamespace
import uuid

import pytest

from app.application.line_builder import build_order_lines
from app.domain.errors import NotFound
from app.domain.models import Product

STORE_ID = uuid.uuid4()

def product(name, price):
    return Product(id=uuid.uuid4(), store_id=STORE_ID, name=name, price=Decimal(price))

def line(p, quantity):
    return SimpleNamespace(product_id=p.id if isinstance(p, Product) else p, quantity=quantity)

class FakeCatalog:
    def __init__(self, *products):
        self.products = {p.id: p for p in products}
        self.calls = []

    def find_products(self, store_id, product_ids):
        self.calls.append((store_id, list(product_ids)))
        return {pid: self.products[pid] for pid in product_ids if pid in self.products}

def test_prices_each_line_and_sums_total():
    tea, cake = product("Tea", "4.50"), product("Cake", "6.25")
    catalog = FakeCatalog(tea, cake)

    priced = build_order_lines(STORE_ID, [line(tea, 2), line(cake, 3)], catalog.find_products)

    assert [l.line_total for l in priced.lines] == [Decimal("9.00"), Decimal("18.75")]
    assert priced.total == Decimal("27.75")
    assert [(l.product_name, l.unit_price) for l in priced.lines] == [("Tea", Decimal("4.50")), ("Cake", Decimal("6.25"))]

def test_repeated_product_is_resolved_once():
    tea = product("Tea", "4.50")
    catalog = FakeCatalog(tea)

    priced = build_order_lines(STORE_ID, [line(tea, 1), line(tea, 2)], catalog.find_products)

    assert catalog.calls == [(STORE_ID, [tea.id])]
    assert [l.line_no for l in priced.lines] == [1, 2]
    assert priced.total == Decimal("13.50")

def test_reports_every_missing_product_in_request_order():
    tea = product("Tea", "4.50")
    first, second = uuid.uuid4(), uuid.uuid4()
    catalog = FakeCatalog(tea)

    with pytest.raises(NotFound) as exc_info:
        build_order_lines(STORE_ID, [line(first, 1), line(tea, 1), line(second, 1)], catalog.find_products)

    assert exc_info.value.context == {"resource": "product", "ids": [first, second], "store_id": STORE_ID}

def test_lookup_is_scoped_to_store():
    tea = product("Tea", "4.50")
    catalog = FakeCatalog(tea)
    build_order_lines(STORE_ID, [line(tea, 1)], catalog.find_products)
    assert catalog.calls[0][0] == STORE_ID
