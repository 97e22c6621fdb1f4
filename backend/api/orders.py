import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from dependencies import get_order_service
from models import Location, Order
from schemas import (
    ErrorResponse,
    LocationResponse,
    OrderCoordinatesRequest,
    OrderResponse,
    OrderStatusRequest,
    TakeOrderResponse,
)
from services.orders_service import OrderService

logger = logging.getLogger("order-dispatch")

router = APIRouter(prefix="/orders", tags=["orders"])


def _format_location(location: Location) -> LocationResponse:
    return LocationResponse(
        coordinates=list(location.coordinates),
        address=location.address,
    )


def _format_order(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        origin=_format_location(order.origin),
        destination=_format_location(order.destination),
        distance=order.distance,
        status=order.status.value,
        created_at=order.created_at,
    )


@router.post(
    "",
    response_model=OrderResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Bad request"},
        404: {"model": ErrorResponse, "description": "Coordinates not found"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)
async def create_order(
    payload: Optional[OrderCoordinatesRequest] = Body(default=None),
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    logger.info("POST request to create an order. payload=%s", payload)
    order = await asyncio.to_thread(service.create_order, payload)
    return _format_order(order)


@router.get(
    "",
    response_model=List[OrderResponse],
    responses={
        400: {"model": ErrorResponse, "description": "Bad request"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)
async def read_orders(
    page: Optional[int] = Query(default=None, description="Page number, from 1"),
    limit: Optional[int] = Query(default=None, description="Page size"),
    service: OrderService = Depends(get_order_service),
) -> List[OrderResponse]:
    logger.info("GET request to get orders. page=%s limit=%s", page, limit)
    orders = await asyncio.to_thread(service.get_orders, page, limit)
    return [_format_order(order) for order in orders]


@router.patch(
    "/{order_id}",
    response_model=TakeOrderResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Bad request"},
        404: {"model": ErrorResponse, "description": "Order not found"},
        412: {"model": ErrorResponse, "description": "Order already taken"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)
async def take_order(
    order_id: int,
    payload: Optional[OrderStatusRequest] = Body(default=None),
    service: OrderService = Depends(get_order_service),
) -> TakeOrderResponse:
    requested_status = payload.status if payload else None
    logger.info(
        "PATCH request to take an order. order_id=%s status=%s",
        order_id,
        requested_status,
    )
    result = await asyncio.to_thread(service.take_order, order_id, requested_status)
    return TakeOrderResponse(id=result.id, order_status=result.status.value)
