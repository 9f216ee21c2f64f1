from slowapi import Limiter
from slowapi.util import get_remote_address

from useradmin.core.config import settings


# ============================================================================
# Rate Limiter Setup
# ============================================================================
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.rate_limit_storage_uri,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)
