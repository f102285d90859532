from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class OrderType(str, Enum):
    DELIVERY = "DELIVERY"
    PICKUP = "PICKUP"


class UserRole(str, Enum):
    CUSTOMER = "CUSTOMER"
    OWNER = "OWNER"
    MANAGER = "MANAGER"
    MASTER = "MASTER"


class SortOption(str, Enum):
    LATEST = "LATEST"
    OLDEST = "OLDEST"
    PRICE_HIGH = "PRICE_HIGH"
    PRICE_LOW = "PRICE_LOW"


# Staff-driven progression. CANCELLED is only reached through cancellation.
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.ACCEPTED}),
    OrderStatus.ACCEPTED: frozenset({OrderStatus.IN_PROGRESS}),
    OrderStatus.IN_PROGRESS: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

STAFF_ROLES = frozenset({UserRole.OWNER, UserRole.MANAGER, UserRole.MASTER})
ORDERING_ROLES = frozenset({UserRole.CUSTOMER, UserRole.OWNER})


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Return True if staff may move an order from ``current`` to ``target``."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())
