import sys
import logging
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from filesense.api.routes import router
from filesense.api.metrics import router as metrics_router
from filesense.api.report import router as report_router
from filesense.core.config import get_settings
from filesense.core.errors import AnalysisError, ErrorCodes, get_error_response
from filesense.core.logging import configure_logging
from filesense.core.middleware import CorrelationIDMiddleware, TimeoutMiddleware, get_correlation_id
from filesense.core.rate_limit import limiter
from filesense.core.security import SecurityHeadersMiddleware, validate_production_security

# Load environment variables
load_dotenv()

# Load and validate configuration
try:
    settings = get_settings()
except Exception as e:
    # Basic logger for startup errors
    logging.basicConfig(level=logging.ERROR)
    logger = logging.getLogger(__name__)
    logger.error(f"Failed to load configuration: {e}")
    sys.exit(1)

configure_logging(settings.log_level, settings.log_format)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="FileSense API",
    description="Dataset profiling and AI-generated reports for CSV/Excel files",
    version="1.0.0"
)

# Store limiter and settings in app state for use in routes
app.state.limiter = limiter
app.state.settings = settings

# Request bodies on these paths carry a dataset; a malformed one is an invalid dataset
DATASET_PATHS = ("/api/analyze", "/api/profile")


def _language_of(request: Request) -> str:
    return request.query_params.get("language") or settings.default_language


def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded with the usual {"error": ...} body."""
    correlation_id = get_correlation_id(request)
    return JSONResponse(
        status_code=429,
        content=get_error_response(ErrorCodes.RATE_LIMIT_EXCEEDED, _language_of(request)),
        headers={
            "Retry-After": str(exc.retry_after) if hasattr(exc, 'retry_after') else "60",
            "X-Correlation-ID": correlation_id
        }
    )


def analysis_error_handler(request: Request, exc: AnalysisError):
    correlation_id = get_correlation_id(request)
    logger.warning(f"{exc.code} on {request.url.path}: {exc.message} (status {exc.status_code})")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers={"X-Correlation-ID": correlation_id}
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    if request.url.path in DATASET_PATHS:
        return JSONResponse(
            status_code=400,
            content=get_error_response(ErrorCodes.INVALID_INPUT, _language_of(request)),
            headers={"X-Correlation-ID": get_correlation_id(request)}
        )
    return await request_validation_exception_handler(request, exc)


app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_exception_handler(AnalysisError, analysis_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

# Add middleware in order (last added is first executed)
# 1. Correlation ID middleware (first, to add IDs to all requests)
app.add_middleware(CorrelationIDMiddleware)

# 2. Compression middleware
app.add_middleware(GZipMiddleware, minimum_size=1000)

# 3. CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization", "X-Correlation-ID"],
    expose_headers=["X-Correlation-ID"]
)

# 4. Request timeout middleware
app.add_middleware(TimeoutMiddleware, timeout_seconds=settings.request_timeout_seconds)

# 5. Security headers middleware (CSP, X-Frame-Options, etc.)
app.add_middleware(SecurityHeadersMiddleware)

# Validate production security settings
validate_production_security(settings)

logger.info(f"CORS allowed origins: {settings.allowed_origins_list}")

app.include_router(router, prefix="/api")
app.include_router(metrics_router, prefix="/api")
app.include_router(report_router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "FileSense API is running"}

logger.info("Application started successfully")
