from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("compliance.request")

# query params worth echoing in the access log
_TRACED_PARAMS = ("as_of", "company_id", "doc_type")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    One access-log line per request, tagged with x-request-id.
    Evaluation endpoints are date-dependent, so as_of is logged too.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_id=%s method=%s path=%s status=500 unhandled",
                request_id,
                request.method,
                request.url.path,
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000.0
        traced = " ".join(
            f"{k}={request.query_params[k]}" for k in _TRACED_PARAMS if k in request.query_params
        )
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "request_id=%s method=%s path=%s status=%s duration_ms=%.2f %s",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            traced,
        )

        response.headers["x-request-id"] = request_id
        response.headers["x-response-time-ms"] = f"{duration_ms:.2f}"
        return response
