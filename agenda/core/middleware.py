# agenda/core/middleware.py
"""Custom middleware for request handling"""
import uuid
import time
import logging
from starlette.requests import Request

logger = logging.getLogger(__name__)

# Query parameters that grant access to an appointment and must never reach the logs
REDACTED_PARAMS = ("token",)


def loggable_url(request: Request) -> str:
    """Request URL with manage-link tokens masked"""
    url = request.url
    if not any(name in request.query_params for name in REDACTED_PARAMS):
        return str(url)
    params = [
        (name, "***" if name in REDACTED_PARAMS else value)
        for name, value in request.query_params.multi_items()
    ]
    query = "&".join(f"{name}={value}" for name, value in params)
    return str(url.replace(query=query))


async def correlation_id_middleware(request: Request, call_next):
    """Add correlation ID to all requests for tracing"""
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    request.state.correlation_id = correlation_id

    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


async def request_logging_middleware(request: Request, call_next):
    """Log every request with its establishment, when the caller names one"""
    start_time = time.time()
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    url = loggable_url(request)
    establishment_id = request.query_params.get("establishment_id")

    logger.info(
        "Request started",
        extra={
            "correlation_id": correlation_id,
            "method": request.method,
            "url": url,
            "establishment_id": establishment_id,
            "client": request.client.host if request.client else "unknown",
        }
    )

    response = await call_next(request)

    duration = time.time() - start_time
    level = logging.WARNING if response.status_code >= 500 else logging.INFO
    logger.log(
        level,
        "Request completed",
        extra={
            "correlation_id": correlation_id,
            "method": request.method,
            "url": url,
            "establishment_id": establishment_id,
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 2),
        }
    )

    return response
