"""Map order domain failures to HTTP responses.

The domain raises an error kind plus structured context; the status code and
the user-facing message for each kind live here.
"""
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.domain.errors import ErrorKind, OrderServiceError
from shared.core import get_logger

logger = get_logger(__name__)

ERROR_RESPONSES: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.FORBIDDEN: (403, "You do not have permission to perform this action."),
    ErrorKind.NOT_FOUND: (404, "The requested resource was not found."),
    ErrorKind.INVALID_STATE: (409, "The order status does not allow this change."),
    ErrorKind.ALREADY_CANCELLED: (409, "The order has already been cancelled."),
    ErrorKind.CANCELLATION_WINDOW_EXPIRED: (409, "The cancellation period for this order has passed."),
    ErrorKind.CONCURRENT_UPDATE: (409, "The order was modified by another request. Please retry."),
}

NOT_FOUND_MESSAGES = {
    "order": "Order not found.",
    "store": "Store not found.",
    "product": "Product not found.",
    "category": "Category not found.",
}

def error_message(exc: OrderServiceError) -> str:
    if exc.kind == ErrorKind.NOT_FOUND:
        message = NOT_FOUND_MESSAGES.get(exc.context.get("resource"))
        if message:
            return message
    return ERROR_RESPONSES[exc.kind][1]

async def order_service_error_handler(request: Request, exc: OrderServiceError) -> JSONResponse:
    status_code = ERROR_RESPONSES[exc.kind][0]
    logger.info(
        f"Request rejected: {exc.kind.value}",
        extra={'extra_fields': {'path': request.url.path, 'kind': exc.kind.value, **exc.context}}
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "code": exc.kind.value,
            "message": error_message(exc),
            "context": jsonable_encoder(exc.context),
        },
    )

def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OrderServiceError, order_service_error_handler)
