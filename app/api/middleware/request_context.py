from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.api.observability.metrics import (
    HTTP_REQUESTS_TOTAL,
    HTTP_REQUEST_DURATION_SECONDS,
    normalize_path,
)
from app.core.observability.request_context import bind_request_id, reset_request_id

log = logging.getLogger("mediator.request")


def _json_log(event: str, **fields):
    # Structured log in a single line; tokens are never logged.
    msg = {"event": event, **fields}
    log.info("%s", msg)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Request ID + metrics + one structured log line per request.

    Adds:
      request.state.request_id
      response header: X-Request-Id
    The id is also bound for outbound calls, which send it as X-CORRELATION-ID.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = rid
        ctx_token = bind_request_id(rid)

        start = time.time()
        try:
            resp = await call_next(request)
        finally:
            reset_request_id(ctx_token)
        dur_ms = int((time.time() - start) * 1000)

        resp.headers["X-Request-Id"] = rid

        p = normalize_path(request.url.path)
        m = request.method.upper()
        s = str(getattr(resp, "status_code", 0))
        HTTP_REQUESTS_TOTAL.labels(method=m, path=p, status=s).inc()
        HTTP_REQUEST_DURATION_SECONDS.labels(method=m, path=p).observe(dur_ms / 1000.0)

        if not request.url.path.startswith("/health"):
            _json_log(
                "request",
                request_id=rid,
                method=request.method,
                path=request.url.path,
                status_code=resp.status_code,
                duration_ms=dur_ms,
            )
        return resp


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Security headers (enabled in prod by default)."""

    def __init__(self, app, enabled: bool = True):
        super().__init__(app)
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        resp = await call_next(request)
        if not self.enabled:
            return resp

        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("Referrer-Policy", "no-referrer")
        return resp
