"""
Database connection management.
"""
import logging

import httpx
from postgrest.exceptions import APIError
from supabase import create_client, Client
from config.settings import SUPABASE_URL, SUPABASE_KEY, SUPABASE_SERVICE_KEY, USE_SUPABASE

logger = logging.getLogger(__name__)

# Errors a PostgREST round trip can raise from execute()
QUERY_ERRORS = (APIError, httpx.HTTPError)

_supabase_client: Client = None
_supabase_service_client: Client = None

def get_supabase_client(use_service_key: bool = False) -> Client:
    """
    Get Supabase client instance.

    Args:
        use_service_key: If True, use service key (bypasses row level security)

    Returns:
        Supabase client instance
    """
    global _supabase_client, _supabase_service_client

    if not USE_SUPABASE:
        raise ValueError("Supabase not configured. Set SUPABASE_URL and SUPABASE_KEY in .env")

    if use_service_key:
        if _supabase_service_client is None:
            if not SUPABASE_SERVICE_KEY:
                raise ValueError("SUPABASE_SERVICE_KEY not configured")
            logger.debug("Creating Supabase service client for %s", SUPABASE_URL)
            _supabase_service_client = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
        return _supabase_service_client
    else:
        if _supabase_client is None:
            logger.debug("Creating Supabase client for %s", SUPABASE_URL)
            _supabase_client = create_client(SUPABASE_URL, SUPABASE_KEY)
        return _supabase_client

def reset_clients() -> None:
    """Drop cached clients so the next call builds fresh ones."""
    global _supabase_client, _supabase_service_client
    _supabase_client = None
    _supabase_service_client = None
