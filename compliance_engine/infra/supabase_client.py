import logging

from supabase import create_client, Client
from compliance_engine.core.config import settings
from compliance_engine.core.errors import ConfigError

logger = logging.getLogger(__name__)

_client: Client | None = None


def get_supabase() -> Client:
    """Process-wide service-role client; API and alert worker each build one lazily."""
    global _client
    if _client is not None:
        return _client

    missing = [
        name
        for name in ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY")
        if not getattr(settings, name)
    ]
    if missing:
        raise ConfigError(f"Missing Supabase settings: {', '.join(missing)}")

    _client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    logger.info("supabase client created url=%s", settings.SUPABASE_URL)
    return _client


def reset_supabase() -> None:
    """Drop the cached client (tests, credential rotation)."""
    global _client
    _client = None
