"""
Order store tests: in-process store and the Supabase-backed store.
"""

import threading
from datetime import datetime, timezone
from unittest.mock import MagicMock

import httpx
import pytest

from config import Settings
from errors import StoreError
from models import Location, Order, OrderStatus
from repositories.order_repository import (
    InMemoryOrderStore,
    SupabaseOrderStore,
    build_order_store,
)


def _order(**overrides):
    values = {
        "origin": Location(coordinates=("48.8566", "2.3522"), address="Paris, France"),
        "destination": Location(coordinates=("45.7640", "4.8357"), address="Lyon, France"),
        "distance": 465_000,
        "created_at": datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return Order(**values)


def _row(order_id=7, status="UNASSIGNED"):
    return {
        "id": order_id,
        "origin": {"coordinates": ["48.8566", "2.3522"], "address": "Paris, France"},
        "destination": {"coordinates": ["45.7640", "4.8357"], "address": "Lyon, France"},
        "distance": 465000,
        "status": status,
        "created_at": "2024-05-01T12:00:00Z",
    }


# =============================================================
# TEST: InMemoryOrderStore
# =============================================================

class TestInMemoryOrderStore:

    def test_insert_assigns_monotonic_ids(self):
        store = InMemoryOrderStore()
        ids = [store.insert(_order()) for _ in range(3)]
        assert ids == [1, 2, 3]
        assert store.find_by_id(2).id == 2

    def test_find_missing(self):
        assert InMemoryOrderStore().find_by_id(99) is None

    def test_list_page_is_ordered_by_id(self):
        store = InMemoryOrderStore()
        for _ in range(5):
            store.insert(_order())
        assert [order.id for order in store.list_page(1, 3)] == [2, 3, 4]
        assert store.list_page(10, 3) == []

    def test_transition_is_compare_and_set(self):
        store = InMemoryOrderStore()
        order_id = store.insert(_order())

        assert store.try_transition(order_id, OrderStatus.UNASSIGNED, OrderStatus.TAKEN)
        assert not store.try_transition(order_id, OrderStatus.UNASSIGNED, OrderStatus.TAKEN)
        assert store.find_by_id(order_id).status is OrderStatus.TAKEN

    def test_transition_on_missing_order(self):
        store = InMemoryOrderStore()
        assert not store.try_transition(5, OrderStatus.UNASSIGNED, OrderStatus.TAKEN)

    def test_concurrent_transitions_single_winner(self):
        store = InMemoryOrderStore()
        order_id = store.insert(_order())
        workers = 32
        barrier = threading.Barrier(workers)
        results = []
        results_lock = threading.Lock()

        def attempt():
            barrier.wait()
            outcome = store.try_transition(
                order_id, OrderStatus.UNASSIGNED, OrderStatus.TAKEN
            )
            with results_lock:
                results.append(outcome)

        threads = [threading.Thread(target=attempt) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
        assert results.count(False) == workers - 1

    def test_stored_orders_are_not_shared_with_caller(self):
        store = InMemoryOrderStore()
        order = _order()
        order_id = store.insert(order)
        store.try_transition(order_id, OrderStatus.UNASSIGNED, OrderStatus.TAKEN)
        assert order.status is OrderStatus.UNASSIGNED


# =============================================================
# TEST: SupabaseOrderStore
# =============================================================

class TestSupabaseOrderStore:

    def _client(self):
        client = MagicMock()
        table = client.table.return_value
        return client, table

    def test_insert_returns_generated_id(self):
        client, table = self._client()
        table.insert.return_value.execute.return_value.data = [_row(order_id=11)]

        order_id = SupabaseOrderStore(client).insert(_order())

        assert order_id == 11
        client.table.assert_called_with("orders")
        record = table.insert.call_args.args[0]
        assert record["status"] == "UNASSIGNED"
        assert record["origin"] == {
            "coordinates": ["48.8566", "2.3522"],
            "address": "Paris, France",
        }
        assert "id" not in record

    def test_insert_without_row_raises(self):
        client, table = self._client()
        table.insert.return_value.execute.return_value.data = []

        with pytest.raises(StoreError):
            SupabaseOrderStore(client).insert(_order())

    def test_find_by_id_maps_row(self):
        client, table = self._client()
        query = table.select.return_value.eq.return_value.limit.return_value
        query.execute.return_value.data = [_row(order_id=7, status="TAKEN")]

        order = SupabaseOrderStore(client, table_name="dispatch_orders").find_by_id(7)

        client.table.assert_called_with("dispatch_orders")
        table.select.return_value.eq.assert_called_once_with("id", 7)
        assert order.id == 7
        assert order.status is OrderStatus.TAKEN
        assert order.destination.address == "Lyon, France"
        assert order.created_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_find_by_id_missing(self):
        client, table = self._client()
        query = table.select.return_value.eq.return_value.limit.return_value
        query.execute.return_value.data = []

        assert SupabaseOrderStore(client).find_by_id(7) is None

    def test_list_page_uses_range(self):
        client, table = self._client()
        ordered = table.select.return_value.order.return_value
        ordered.range.return_value.execute.return_value.data = [_row(3), _row(4)]

        orders = SupabaseOrderStore(client).list_page(2, 2)

        table.select.return_value.order.assert_called_once_with("id")
        ordered.range.assert_called_once_with(2, 3)
        assert [order.id for order in orders] == [3, 4]

    @pytest.mark.parametrize("data, expected", [([_row(status="TAKEN")], True), ([], False)])
    def test_transition_is_conditional_update(self, data, expected):
        client, table = self._client()
        first_filter = table.update.return_value.eq
        first_filter.return_value.eq.return_value.execute.return_value.data = data

        result = SupabaseOrderStore(client).try_transition(
            7, OrderStatus.UNASSIGNED, OrderStatus.TAKEN
        )

        assert result is expected
        table.update.assert_called_once_with({"status": "TAKEN"})
        first_filter.assert_called_once_with("id", 7)
        first_filter.return_value.eq.assert_called_once_with("status", "UNASSIGNED")

    @pytest.mark.parametrize("method, args", [
        ("insert", (_order(),)),
        ("find_by_id", (7,)),
        ("list_page", (0, 5)),
        ("try_transition", (7, OrderStatus.UNASSIGNED, OrderStatus.TAKEN)),
    ])
    def test_backend_failures_raise_store_error(self, method, args):
        client = MagicMock()
        failure = httpx.ConnectError("connection refused")
        table = client.table.return_value
        table.insert.return_value.execute.side_effect = failure
        table.select.return_value.eq.return_value.limit.return_value.execute.side_effect = failure
        table.select.return_value.order.return_value.range.return_value.execute.side_effect = failure
        table.update.return_value.eq.return_value.eq.return_value.execute.side_effect = failure

        with pytest.raises(StoreError) as exc_info:
            getattr(SupabaseOrderStore(client), method)(*args)

        assert exc_info.value.code == "store_error"
        assert exc_info.value.__cause__ is failure


# =============================================================
# TEST: build_order_store
# =============================================================

class TestBuildOrderStore:

    def test_memory_backend(self):
        store = build_order_store(Settings(order_store_backend="memory"))
        assert isinstance(store, InMemoryOrderStore)

    def test_unknown_backend(self):
        with pytest.raises(NotImplementedError):
            build_order_store(Settings(order_store_backend="redis"))
