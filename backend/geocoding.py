from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol, Sequence

import httpx

from config import Settings, require_env
from errors import GatewayError, NotFoundError
from models import Location, ResolvedLocations

logger = logging.getLogger("order-dispatch")

NOT_FOUND_STATUSES = {"NOT_FOUND", "ZERO_RESULTS"}
UNRESOLVABLE_REQUEST_STATUSES = {"INVALID_REQUEST", "ZERO_RESULTS"}


class GeocodingGateway(Protocol):
    def resolve(
        self, origin: Sequence[str], destination: Sequence[str]
    ) -> ResolvedLocations: ...


def _as_pair(coordinates: Sequence[str]) -> tuple[str, str]:
    latitude, longitude = coordinates
    return latitude.strip(), longitude.strip()


def _format_point(coordinates: Sequence[str]) -> str:
    return ",".join(_as_pair(coordinates))


class PassthroughGateway:
    """Offline provider: echoes coordinates back without address or distance."""

    def resolve(
        self, origin: Sequence[str], destination: Sequence[str]
    ) -> ResolvedLocations:
        return ResolvedLocations(
            origin=Location(coordinates=_as_pair(origin)),
            destination=Location(coordinates=_as_pair(destination)),
        )

    def close(self) -> None:
        return None


class GoogleDistanceMatrixGateway:
    """Resolve a trip through the Google Distance Matrix API.

    One synchronous call per order; failures are surfaced, never retried.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://maps.googleapis.com/maps/api",
        timeout: float = 10,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def _fetch_matrix(
        self, origin: Sequence[str], destination: Sequence[str]
    ) -> Dict[str, Any]:
        url = f"{self.base_url}/distancematrix/json"
        params = {
            "origins": _format_point(origin),
            "destinations": _format_point(destination),
            "key": self.api_key,
        }
        try:
            response = self._client.get(url, params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Distance matrix request failed: %s", exc)
            raise GatewayError(
                "Geocoding provider request failed", code="gateway_error"
            ) from exc
        if not isinstance(data, dict):
            raise GatewayError(
                "Unexpected geocoding provider response", code="gateway_error"
            )
        return data

    def resolve(
        self, origin: Sequence[str], destination: Sequence[str]
    ) -> ResolvedLocations:
        data = self._fetch_matrix(origin, destination)
        status = data.get("status")
        if status in UNRESOLVABLE_REQUEST_STATUSES:
            raise NotFoundError("Coordinates not found", code="coordinates_not_found")
        if status != "OK":
            logger.warning(
                "Distance matrix returned status=%s message=%s",
                status,
                data.get("error_message"),
            )
            raise GatewayError(
                f"Geocoding provider returned status {status}", code="gateway_error"
            )

        try:
            element = data["rows"][0]["elements"][0]
        except (KeyError, IndexError, TypeError) as exc:
            raise GatewayError(
                "Unexpected geocoding provider response", code="gateway_error"
            ) from exc

        element_status = element.get("status")
        if element_status in NOT_FOUND_STATUSES:
            raise NotFoundError("Coordinates not found", code="coordinates_not_found")
        if element_status != "OK":
            raise GatewayError(
                f"Geocoding provider returned element status {element_status}",
                code="gateway_error",
            )

        origin_addresses = data.get("origin_addresses") or [None]
        destination_addresses = data.get("destination_addresses") or [None]
        distance = (element.get("distance") or {}).get("value")
        return ResolvedLocations(
            origin=Location(coordinates=_as_pair(origin), address=origin_addresses[0]),
            destination=Location(
                coordinates=_as_pair(destination), address=destination_addresses[0]
            ),
            distance=int(distance) if distance is not None else None,
        )


def build_geocoder(settings: Settings) -> GeocodingGateway:
    provider = settings.geocoder_provider
    if provider == "passthrough":
        return PassthroughGateway()
    if provider == "google":
        api_key = settings.google_maps_api_key or require_env("GOOGLE_MAPS_API_KEY")
        return GoogleDistanceMatrixGateway(
            api_key,
            base_url=settings.google_maps_base_url,
            timeout=settings.geocoder_timeout_seconds,
        )
    raise NotImplementedError(f"Geocoder provider {provider} is not supported yet.")
