from fastapi import Request

from config import Settings
from geocoding import build_geocoder
from repositories.order_repository import build_order_store
from services.orders_service import OrderService


def build_order_service(settings: Settings) -> OrderService:
    return OrderService(
        store=build_order_store(settings),
        geocoder=build_geocoder(settings),
    )


def get_order_service(request: Request) -> OrderService:
    service = getattr(request.app.state, "order_service", None)
    if service is None:
        raise RuntimeError("Order service is not configured")
    return service
