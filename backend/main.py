import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import orders_router
from config import settings
from dependencies import build_order_service
from errors import (
    InternalError,
    NotFoundError,
    OrderDispatchError,
    PreconditionFailedError,
    ValidationError,
)
from services.orders_service import OrderService

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger("order-dispatch")

ERROR_STATUS_CODES = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PreconditionFailedError, status.HTTP_412_PRECONDITION_FAILED),
    (InternalError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def _status_code_for(exc: OrderDispatchError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(status_code: int, code: str, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code, "detail": detail})


def create_app(order_service: Optional[OrderService] = None) -> FastAPI:
    app = FastAPI(title="Order Dispatch API")
    app.state.order_service = order_service
    app.state.owns_order_service = False

    if settings.allowed_origins == ["*"]:
        allow_origins = ["*"]
    else:
        allow_origins = settings.allowed_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(orders_router)

    @app.on_event("startup")
    async def _on_startup() -> None:
        if app.state.order_service is None:
            app.state.order_service = build_order_service(settings)
            app.state.owns_order_service = True
            logger.info(
                "Order service ready (store=%s, geocoder=%s)",
                settings.order_store_backend,
                settings.geocoder_provider,
            )

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:
        if not app.state.owns_order_service:
            return
        service = app.state.order_service
        close = getattr(getattr(service, "geocoder", None), "close", None)
        if close is not None:
            close()

    @app.exception_handler(OrderDispatchError)
    async def _handle_order_error(request: Request, exc: OrderDispatchError):
        status_code = _status_code_for(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return _error_response(status_code, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _handle_request_validation(request: Request, exc: RequestValidationError):
        return _error_response(status.HTTP_400_BAD_REQUEST, "bad_request", str(exc.errors()))

    @app.exception_handler(Exception)
    async def _handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", "Internal server error"
        )

    return app


app = create_app()
