"""Order domain failures.

Raised by the domain entities and the lifecycle service when a business rule
is violated. Each failure carries an ``ErrorKind`` and structured context; the
API layer owns the user-facing message and HTTP status for each kind.
"""
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    CANCELLATION_WINDOW_EXPIRED = "CANCELLATION_WINDOW_EXPIRED"
    CONCURRENT_UPDATE = "CONCURRENT_UPDATE"


class OrderServiceError(Exception):
    kind: ErrorKind

    def __init__(self, **context: Any):
        self.context = context
        super().__init__(self.kind.value, context)


class Forbidden(OrderServiceError):
    """The acting user's role or identity does not permit the operation."""
    kind = ErrorKind.FORBIDDEN


class NotFound(OrderServiceError):
    """A referenced store, product, category or order does not exist."""
    kind = ErrorKind.NOT_FOUND


class InvalidState(OrderServiceError):
    """The operation is not legal in the order's current status."""
    kind = ErrorKind.INVALID_STATE


class AlreadyCancelled(OrderServiceError):
    kind = ErrorKind.ALREADY_CANCELLED


class CancellationWindowExpired(OrderServiceError):
    kind = ErrorKind.CANCELLATION_WINDOW_EXPIRED


class ConcurrentUpdate(OrderServiceError):
    """Another transaction modified the order after it was read."""
    kind = ErrorKind.CONCURRENT_UPDATE
