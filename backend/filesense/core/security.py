"""
Security headers and startup checks.
"""
import os
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from filesense.core.config import Settings
from filesense.core.sanitization import mask_secret

logger = logging.getLogger(__name__)


# The HTML report carries its own <style> block and inline bar heights,
# and loads nothing else.
DEFAULT_CSP = {
    "default-src": "'self'",
    "script-src": "'none'",
    "style-src": "'self' 'unsafe-inline'",
    "img-src": "'self' data:",
    "connect-src": "'self'",
    "frame-ancestors": "'none'",
    "base-uri": "'self'",
    "form-action": "'self'",
}


def build_csp_header(csp_dict: dict) -> str:
    """Build CSP header string from dictionary."""
    return "; ".join(f"{key} {value}" for key, value in csp_dict.items())


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add CSP, nosniff, frame, referrer and permissions headers to every response."""

    def __init__(self, app):
        super().__init__(app)
        self.csp_header = build_csp_header(DEFAULT_CSP)

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers["Content-Security-Policy"] = self.csp_header
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = (
            "accelerometer=(), camera=(), geolocation=(), "
            "gyroscope=(), magnetometer=(), microphone=(), "
            "payment=(), usb=()"
        )

        return response


def validate_production_security(settings: Settings) -> None:
    """
    Check settings that must be right before serving production traffic.

    Raises RuntimeError in production when the provider credential is missing.
    Other environments only log.
    """
    env = os.getenv('ENVIRONMENT', 'development').lower()

    if settings.has_api_key:
        logger.info(f"OPENROUTER_API_KEY configured: {mask_secret(settings.openrouter_api_key)}")

    if env not in ('production', 'prod'):
        if not settings.has_api_key:
            logger.warning("OPENROUTER_API_KEY not set - /api/analyze will answer 500")
        logger.info(f"Running in {env} mode - security validation skipped")
        return

    if not settings.has_api_key:
        raise RuntimeError("OPENROUTER_API_KEY environment variable is required in production.")

    if any('localhost' in origin for origin in settings.allowed_origins_list):
        logger.warning(
            "ALLOWED_ORIGINS contains 'localhost' in production. "
            "Consider removing for security."
        )

    logger.info("Production security validation passed")
