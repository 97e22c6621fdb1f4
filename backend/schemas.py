from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class OrderCoordinatesRequest(BaseModel):
    origin: Optional[List[str]] = Field(
        default=None, description="Start latitude and longitude, e.g. ['48.8566', '2.3522']"
    )
    destination: Optional[List[str]] = Field(
        default=None, description="End latitude and longitude, e.g. ['45.7640', '4.8357']"
    )


class OrderStatusRequest(BaseModel):
    status: Optional[str] = Field(default=None, description="Requested status, TAKEN")


class LocationResponse(BaseModel):
    coordinates: List[str]
    address: Optional[str]


class OrderResponse(BaseModel):
    id: int
    origin: LocationResponse
    destination: LocationResponse
    distance: Optional[int]
    status: str
    created_at: datetime


class TakeOrderResponse(BaseModel):
    status: str = "SUCCESS"
    id: int
    order_status: str


class ErrorResponse(BaseModel):
    error: str
    detail: str
