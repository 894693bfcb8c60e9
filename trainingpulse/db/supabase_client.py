"""Shared Supabase client for the db modules and auth endpoints."""

from functools import lru_cache

from supabase import Client, create_client

from trainingpulse.core.config import get_settings
from trainingpulse.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    The process-wide Supabase client, built on first use.

    It authenticates with the service role key, so row-level security does
    not apply; the API layer's permission checks are the only access control
    for courses, phases and lookups.

    Raises:
        RuntimeError: the client cannot be created from the configured URL and key
    """
    settings = get_settings()
    try:
        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        raise RuntimeError(f"Cannot connect TrainingPulse to Supabase at {settings.SUPABASE_URL}: {e}") from e
    logger.info(f"Supabase client ready for {settings.SUPABASE_URL}")
    return client
