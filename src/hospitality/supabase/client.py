"""
Supabase client factory.
"""

from __future__ import annotations

from supabase import Client, create_client

from hospitality.config import AppConfig
from hospitality.logging_config import get_logger

logger = get_logger(__name__)


def create_supabase_client(config: AppConfig) -> Client:
    """
    Build a service-role Supabase client.

    Raises:
        RuntimeError: when the URL or the service role key is missing
    """
    if not config.supabase_url or not config.supabase_service_role_key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be configured")
    logger.info(f"Creating Supabase client for {config.supabase_url}")
    return create_client(config.supabase_url, config.supabase_service_role_key)
