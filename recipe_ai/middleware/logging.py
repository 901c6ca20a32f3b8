"""Request/response logging middleware."""

import logging
import time
from typing import Any, Callable, Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from recipe_ai.core.request_id import resolve_request_id, set_request_id

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = ("api_key", "password", "token", "secret", "auth")


def mask_sensitive_data(data: Any) -> Any:
    """Recursively mask sensitive fields in data."""
    if isinstance(data, dict):
        masked: Dict[str, Any] = {}
        for key, value in data.items():
            if any(sensitive in str(key).lower() for sensitive in SENSITIVE_KEYS):
                if isinstance(value, str) and len(value) > 8:
                    masked[key] = f"{value[:8]}..."
                else:
                    masked[key] = "***"
            else:
                masked[key] = mask_sensitive_data(value)
        return masked
    if isinstance(data, list):
        return [mask_sensitive_data(item) for item in data]
    return data


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging requests and responses with timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get("x-request-id"))
        set_request_id(request_id)
        request.state.request_id = request_id

        start_time = time.time()
        method = request.method
        path = request.url.path

        logger.info(
            f"API Request: {method} {path}",
            extra={
                "request_id": request_id,
                "method": method,
                "path": path,
                "params": mask_sensitive_data(dict(request.query_params)),
                "content_type": request.headers.get("content-type"),
                "content_length": request.headers.get("content-length"),
                "user_id": request.headers.get("x-user-id"),
                "client_ip": request.client.host if request.client else None,
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"API Error: {method} {path} - {str(e)}",
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "process_time_ms": round((time.time() - start_time) * 1000, 2),
                },
                exc_info=True,
            )
            raise

        logger.info(
            f"API Response: {method} {path} - {response.status_code}",
            extra={
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "process_time_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        response.headers["X-Request-ID"] = request_id
        return response
