import logging
from functools import lru_cache

from supabase import create_client, Client
from campus.core.config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def create_supabase_client() -> Client:
    """
    Create the Supabase client used for all table access.

    Uses the service role key so row level security does not hide
    other users' rows from the API layer. The client is built on first
    use rather than at import time.

    Raises:
        RuntimeError: If the client cannot be created
    """
    try:
        client: Client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
        logger.info("Supabase client created for %s", settings.SUPABASE_URL)
        return client
    except Exception as e:
        logger.error("Failed to create Supabase client: %s", e)
        raise RuntimeError(f"Failed to connect to Supabase: {str(e)}")


def get_supabase() -> Client:
    """FastAPI dependency returning the shared Supabase client"""
    return create_supabase_client()
