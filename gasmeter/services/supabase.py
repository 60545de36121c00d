import logging
from typing import Optional

from supabase import ClientOptions, create_client, Client

from gasmeter.config import Settings
from gasmeter.errors import StagingFailed

# ================================
# LAZY SUPABASE CLIENT
# ================================
_client: Optional[Client] = None


def get_client(settings: Settings) -> Client:
    """
    Return the process-wide Supabase client, creating it on first use so
    that importing this module never requires credentials.
    """
    global _client
    if _client is None:
        if not settings.supabase_url or not settings.supabase_key:
            logging.error("SUPABASE_URL / SUPABASE_KEY are not set; media staging is unavailable.")
            raise StagingFailed("SUPABASE_URL / SUPABASE_KEY are not set")
        options = ClientOptions(storage_client_timeout=int(settings.request_timeout))
        _client = create_client(settings.supabase_url, settings.supabase_key, options=options)
    return _client
