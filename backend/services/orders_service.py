import logging
from dataclasses import replace
from typing import Any, List, Optional

from errors import NotFoundError, PreconditionFailedError, ValidationError
from geocoding import GeocodingGateway
from models import Order, OrderStatus, TakeOrderResult
from repositories.order_repository import OrderStore
from services.coordinates_validator import (
    get_coordinates,
    validate_order_coordinates,
)
from services.pagination import page_window

logger = logging.getLogger("order-dispatch")


def _parse_requested_status(value: Any) -> OrderStatus:
    if isinstance(value, OrderStatus):
        requested = value
    else:
        try:
            requested = OrderStatus(str(value).strip().upper())
        except ValueError as exc:
            raise ValidationError(
                f"Unknown order status {value!r}", code="bad_status"
            ) from exc
    if requested is not OrderStatus.TAKEN:
        raise ValidationError(
            f"Orders can only be updated to {OrderStatus.TAKEN.value}",
            code="bad_status",
        )
    return requested


class OrderService:
    """Order lifecycle: creation, paginated listing and the take transition.

    The store and the geocoder are passed in; the service keeps no order
    state of its own between calls.
    """

    def __init__(self, store: OrderStore, geocoder: GeocodingGateway) -> None:
        self.store = store
        self.geocoder = geocoder

    def create_order(self, payload: Any) -> Order:
        validate_order_coordinates(payload)
        origin = get_coordinates(payload, "origin")
        destination = get_coordinates(payload, "destination")

        resolved = self.geocoder.resolve(origin, destination)
        order = Order(
            origin=resolved.origin,
            destination=resolved.destination,
            distance=resolved.distance,
            status=OrderStatus.UNASSIGNED,
        )
        order_id = self.store.insert(order)
        logger.info("Order %s created (distance=%s)", order_id, order.distance)
        return replace(order, id=order_id)

    def get_orders(self, page: Optional[int], limit: Optional[int]) -> List[Order]:
        offset, size = page_window(page, limit)
        return self.store.list_page(offset, size)

    def take_order(self, order_id: int, requested_status: Any) -> TakeOrderResult:
        if requested_status is None:
            raise ValidationError("Status parameter is null", code="null_status")
        if self.store.find_by_id(order_id) is None:
            raise NotFoundError(f"Order {order_id} not found", code="order_not_found")
        target = _parse_requested_status(requested_status)

        if not self.store.try_transition(order_id, OrderStatus.UNASSIGNED, target):
            logger.warning("Order %s is already taken", order_id)
            raise PreconditionFailedError(
                f"Order {order_id} is already taken", code="order_already_taken"
            )
        logger.info("Order %s taken", order_id)
        return TakeOrderResult(id=order_id, status=target)
