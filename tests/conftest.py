from typing import List, Optional, Sequence, Tuple

import pytest
from fastapi.testclient import TestClient

from main import create_app
from models import Location, ResolvedLocations
from repositories.order_repository import InMemoryOrderStore
from services.orders_service import OrderService


class FakeGeocoder:
    """Gateway double returning fixed addresses, or raising ``error``."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.calls: List[Tuple[List[str], List[str]]] = []

    def resolve(
        self, origin: Sequence[str], destination: Sequence[str]
    ) -> ResolvedLocations:
        self.calls.append((list(origin), list(destination)))
        if self.error is not None:
            raise self.error
        return ResolvedLocations(
            origin=Location(coordinates=tuple(origin), address="Paris, France"),
            destination=Location(coordinates=tuple(destination), address="Lyon, France"),
            distance=465_000,
        )


@pytest.fixture
def store() -> InMemoryOrderStore:
    return InMemoryOrderStore()


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def service(store, geocoder) -> OrderService:
    return OrderService(store=store, geocoder=geocoder)


@pytest.fixture
def client(service) -> TestClient:
    return TestClient(create_app(service))
