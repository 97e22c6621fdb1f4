from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple


class OrderStatus(str, Enum):
    UNASSIGNED = "UNASSIGNED"
    TAKEN = "TAKEN"


@dataclass(frozen=True)
class Location:
    coordinates: Tuple[str, str]
    address: Optional[str] = None


@dataclass(frozen=True)
class ResolvedLocations:
    origin: Location
    destination: Location
    distance: Optional[int] = None


@dataclass(frozen=True)
class Order:
    origin: Location
    destination: Location
    status: OrderStatus = OrderStatus.UNASSIGNED
    distance: Optional[int] = None
    id: Optional[int] = None
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


@dataclass(frozen=True)
class TakeOrderResult:
    id: int
    status: OrderStatus
