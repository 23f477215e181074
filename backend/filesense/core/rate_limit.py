"""
Per-IP rate limiting for the endpoints that call the model.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from filesense.core.config import get_settings

limiter = Limiter(key_func=get_remote_address)


def analysis_rate_limit() -> str:
    """Limit string read on every request, so RATE_LIMIT_PER_MINUTE changes apply after reload_settings()."""
    return f"{get_settings().rate_limit_per_minute}/minute"
