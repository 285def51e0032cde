"""Supabase access to the product catalog."""

from functools import lru_cache
from typing import Any

from supabase import Client, create_client

from src.core.config import get_settings

PRODUCTS_TABLE = "products"


@lru_cache
def get_supabase_client() -> Client:
    """Get the cached Supabase client.

    The service only reads the products table, so one client created with
    the secret key is shared by every request.

    Returns:
        Client: Supabase client instance.
    """
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_secret_key)


async def check_database_connection() -> dict[str, Any]:
    """Check that the products table can be queried.

    Returns:
        dict: ``healthy`` flag and, when unhealthy, the ``error`` message.
    """
    try:
        get_supabase_client().table(PRODUCTS_TABLE).select("sku").limit(1).execute()
    except Exception as e:
        return {"healthy": False, "error": str(e)}
    return {"healthy": True}
