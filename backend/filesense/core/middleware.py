"""
Request tracing and timeout middleware.

CorrelationIDMiddleware tags every request, its log records and its response
with one id, and records the request_duration metric.
"""
import asyncio
import logging
import time
import uuid
from contextlib import contextmanager

from fastapi import status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from filesense.core.errors import ErrorCodes, get_error_response
from filesense.core.performance import PerformanceMonitor

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def get_correlation_id(request: Request) -> str:
    return getattr(request.state, 'correlation_id', 'unknown')


@contextmanager
def correlated_logging(correlation_id: str):
    """Stamp every log record created inside the block with correlation_id."""
    previous_factory = logging.getLogRecordFactory()

    def factory(*args, **kwargs):
        record = previous_factory(*args, **kwargs)
        record.correlation_id = correlation_id
        return record

    logging.setLogRecordFactory(factory)
    try:
        yield
    finally:
        logging.setLogRecordFactory(previous_factory)


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's X-Correlation-ID or mint one, and echo it on the response."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        route = {"method": request.method, "path": request.url.path}

        with correlated_logging(correlation_id):
            started = time.perf_counter()
            logger.info(f"Request started: {request.method} {request.url.path}", extra=route)

            try:
                response = await call_next(request)
            except Exception as e:
                elapsed = time.perf_counter() - started
                logger.error(
                    f"Request failed: {request.method} {request.url.path} - {e} ({elapsed:.3f}s)",
                    extra={**route, "duration": elapsed},
                    exc_info=True
                )
                response = JSONResponse(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    content=get_error_response(ErrorCodes.UNKNOWN_ERROR)
                )
                response.headers[CORRELATION_HEADER] = correlation_id
                return response

            elapsed = time.perf_counter() - started
            response.headers[CORRELATION_HEADER] = correlation_id
            response.headers["X-Response-Time"] = f"{elapsed:.3f}"

            PerformanceMonitor.record_metric(
                "request_duration", elapsed, {**route, "status_code": response.status_code}
            )
            logger.info(
                f"Request completed: {request.method} {request.url.path} - {response.status_code} ({elapsed:.3f}s)",
                extra={**route, "status_code": response.status_code, "duration": elapsed}
            )
            return response


class TimeoutMiddleware(BaseHTTPMiddleware):
    """Answer 504 when a request runs longer than timeout_seconds."""

    def __init__(self, app, timeout_seconds: float):
        super().__init__(app)
        self.timeout_seconds = timeout_seconds

    async def dispatch(self, request: Request, call_next):
        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"Request timeout after {self.timeout_seconds} seconds: {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                content=get_error_response(ErrorCodes.TIMEOUT),
                headers={CORRELATION_HEADER: get_correlation_id(request)}
            )
