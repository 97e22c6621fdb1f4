import itertools
import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

import httpx
from postgrest.exceptions import APIError

from config import Settings
from errors import StoreError
from models import Location, Order, OrderStatus
from supabase_client import get_supabase

logger = logging.getLogger("order-dispatch")

DEFAULT_ORDERS_TABLE = "orders"


class OrderStore(Protocol):
    def insert(self, order: Order) -> int: ...

    def find_by_id(self, order_id: int) -> Optional[Order]: ...

    def list_page(self, offset: int, limit: int) -> List[Order]: ...

    def try_transition(
        self, order_id: int, from_status: OrderStatus, to_status: OrderStatus
    ) -> bool: ...


class InMemoryOrderStore:
    """Process-local store with one lock per order id.

    ``_registry_lock`` only guards the dictionaries themselves; status changes
    hold nothing but the lock of the order being changed.
    """

    def __init__(self) -> None:
        self._orders: Dict[int, Order] = {}
        self._locks: Dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._ids = itertools.count(1)

    def insert(self, order: Order) -> int:
        with self._registry_lock:
            order_id = next(self._ids)
            self._locks[order_id] = threading.Lock()
            self._orders[order_id] = replace(order, id=order_id)
        return order_id

    def find_by_id(self, order_id: int) -> Optional[Order]:
        return self._orders.get(order_id)

    def list_page(self, offset: int, limit: int) -> List[Order]:
        with self._registry_lock:
            ids = sorted(self._orders)[offset : offset + limit]
            return [self._orders[order_id] for order_id in ids]

    def try_transition(
        self, order_id: int, from_status: OrderStatus, to_status: OrderStatus
    ) -> bool:
        lock = self._locks.get(order_id)
        if lock is None:
            return False
        with lock:
            current = self._orders[order_id]
            if current.status != from_status:
                return False
            self._orders[order_id] = replace(current, status=to_status)
        return True


def _location_to_row(location: Location) -> Dict[str, Any]:
    return {
        "coordinates": list(location.coordinates),
        "address": location.address,
    }


def _location_from_row(value: Dict[str, Any]) -> Location:
    latitude, longitude = value["coordinates"]
    return Location(coordinates=(latitude, longitude), address=value.get("address"))


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _to_row(order: Order) -> Dict[str, Any]:
    return {
        "origin": _location_to_row(order.origin),
        "destination": _location_to_row(order.destination),
        "distance": order.distance,
        "status": order.status.value,
        "created_at": order.created_at.isoformat(),
    }


def _from_row(row: Dict[str, Any]) -> Order:
    return Order(
        id=int(row["id"]),
        origin=_location_from_row(row["origin"]),
        destination=_location_from_row(row["destination"]),
        distance=row.get("distance"),
        status=OrderStatus(row["status"]),
        created_at=_parse_datetime(row["created_at"]),
    )


class SupabaseOrderStore:
    """Orders persisted in a Supabase (PostgREST) table.

    Status changes are a single conditional UPDATE filtered on the expected
    current status, so the database arbitrates concurrent takes.
    """

    def __init__(self, client: Any, table_name: str = DEFAULT_ORDERS_TABLE) -> None:
        self._client = client
        self.table_name = table_name

    def _table(self):
        return self._client.table(self.table_name)

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except (APIError, httpx.HTTPError) as exc:
            logger.warning("Order store %s failed: %s", action, exc)
            raise StoreError(f"Failed to {action} orders", code="store_error") from exc

    def insert(self, order: Order) -> int:
        response = self._execute(self._table().insert(_to_row(order)), "insert")
        if not response.data:
            raise StoreError("Failed to store order", code="store_error")
        return int(response.data[0]["id"])

    def find_by_id(self, order_id: int) -> Optional[Order]:
        query = (
            self._table()
            .select("*")
            .eq("id", order_id)
            .limit(1)
        )
        response = self._execute(query, "read")
        items = response.data or []
        return _from_row(items[0]) if items else None

    def list_page(self, offset: int, limit: int) -> List[Order]:
        query = (
            self._table()
            .select("*")
            .order("id")
            .range(offset, offset + limit - 1)
        )
        response = self._execute(query, "list")
        return [_from_row(row) for row in response.data or []]

    def try_transition(
        self, order_id: int, from_status: OrderStatus, to_status: OrderStatus
    ) -> bool:
        query = (
            self._table()
            .update({"status": to_status.value})
            .eq("id", order_id)
            .eq("status", from_status.value)
        )
        response = self._execute(query, "update")
        return bool(response.data)


def build_order_store(settings: Settings) -> OrderStore:
    backend = settings.order_store_backend
    if backend == "memory":
        return InMemoryOrderStore()
    if backend == "supabase":
        return SupabaseOrderStore(get_supabase(), table_name=settings.orders_table)
    raise NotImplementedError(f"Order store backend {backend} is not supported yet.")
