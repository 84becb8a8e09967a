import logging

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

logger = logging.getLogger(__name__)


def _build_limiter() -> Limiter:
    common = {
        "key_func": get_remote_address,
        "default_limits": [settings.rate_limit_default],
        "enabled": settings.rate_limit_enabled,
    }
    if settings.redis_url:
        try:
            return Limiter(storage_uri=settings.redis_url, **common)
        except Exception:
            # Fallback to in-memory limiter if remote store is unavailable
            logger.warning("Rate limit storage unavailable, using in-memory limiter")
    return Limiter(**common)


limiter = _build_limiter()
