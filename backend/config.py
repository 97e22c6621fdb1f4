import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent / ".env")


def require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def _get_list(name: str, fallback: str = "") -> List[str]:
    raw_value = os.getenv(name, fallback)
    if not raw_value:
        return []
    return [item.strip() for item in raw_value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    order_store_backend: str = os.getenv("ORDER_STORE_BACKEND", "memory")
    supabase_url: str | None = os.getenv("SUPABASE_URL")
    supabase_service_role_key: str | None = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    orders_table: str = os.getenv("ORDERS_TABLE", "orders")
    geocoder_provider: str = os.getenv("GEOCODER_PROVIDER", "google")
    google_maps_api_key: str | None = os.getenv("GOOGLE_MAPS_API_KEY")
    google_maps_base_url: str = os.getenv(
        "GOOGLE_MAPS_BASE_URL", "https://maps.googleapis.com/maps/api"
    )
    geocoder_timeout_seconds: float = float(
        os.getenv("GEOCODER_TIMEOUT_SECONDS", "10")
    )
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    allowed_origins: List[str] = field(
        default_factory=lambda: _get_list("ALLOWED_ORIGINS", "*")
    )


settings = Settings()
