"""Turn requested (product, quantity) pairs into priced order lines."""
from decimal import Decimal
from typing import Callable, Collection, Mapping, NamedTuple, Protocol, Sequence
import uuid

from app.domain.errors import NotFound
from app.domain.models import OrderLine, Product


class RequestedLine(Protocol):
    product_id: uuid.UUID
    quantity: int


ProductLookup = Callable[[uuid.UUID, Collection[uuid.UUID]], Mapping[uuid.UUID, Product]]


class PricedLines(NamedTuple):
    lines: list[OrderLine]
    total: Decimal


def build_order_lines(
    store_id: uuid.UUID,
    requested: Sequence[RequestedLine],
    find_products: ProductLookup,
) -> PricedLines:
    """Price every requested line against the store's catalog.

    All products are resolved before any line is built. If one or more are
    missing the whole request fails with ``NotFound`` naming every missing id,
    in request order. Line totals use the catalog price at call time.
    """
    wanted = list(dict.fromkeys(line.product_id for line in requested))
    products = find_products(store_id, wanted)
    missing = [product_id for product_id in wanted if product_id not in products]
    if missing:
        raise NotFound(resource="product", ids=missing, store_id=store_id)

    lines = [
        OrderLine.priced(line_no=line_no, product=products[line.product_id], quantity=line.quantity)
        for line_no, line in enumerate(requested, start=1)
    ]
    return PricedLines(lines=lines, total=sum((line.line_total for line in lines), Decimal("0")))
