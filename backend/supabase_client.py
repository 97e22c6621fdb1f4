from functools import lru_cache

from supabase import Client, create_client

from config import require_env, settings


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    url = settings.supabase_url or require_env("SUPABASE_URL")
    key = settings.supabase_service_role_key or require_env(
        "SUPABASE_SERVICE_ROLE_KEY"
    )
    return create_client(url, key)
