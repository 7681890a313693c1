"""Supabase client factory for the statement store.

The statement store writes with the service-role key; statements are
shared ledger data, not per-user rows guarded by RLS.
"""
from supabase import Client, create_client

from apps.api.core.config import Settings


def get_supabase_client(settings: Settings) -> Client:
    """Create a service-role Supabase client from settings."""
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
        raise RuntimeError("Supabase environment variables are not configured")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
