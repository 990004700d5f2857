from __future__ import annotations

import logging
import traceback
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from app.core.github.errors import GitHubError, response_status_for

log = logging.getLogger("mediator.errors")


def _request_id(request: Request):
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id")


def github_error_response(request: Request, exc: GitHubError) -> JSONResponse:
    """Structured failure for domain errors: detail + error kind + request id."""
    rid = _request_id(request)
    status = response_status_for(exc)
    if status >= 500:
        log.warning("github error kind=%s status=%s rid=%s path=%s: %s", exc.kind, status, rid, request.url.path, exc.message)
    payload = {"detail": exc.message, "error": exc.kind}
    if rid:
        payload["request_id"] = rid
    return JSONResponse(status_code=status, content=payload)


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    - Never return stack traces to clients
    - Preserve request_id if present
    - Log traceback server-side
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            rid = _request_id(request)
            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            payload = {"detail": "Internal Server Error"}
            if rid:
                payload["request_id"] = rid
            return JSONResponse(status_code=500, content=payload)
