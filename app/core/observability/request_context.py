from __future__ import annotations

from contextvars import ContextVar
from typing import Optional

# Inbound request id, bound by RequestContextMiddleware for the life of a request.
_REQUEST_ID: ContextVar[Optional[str]] = ContextVar("mediator_request_id", default=None)


def bind_request_id(request_id: Optional[str]):
    return _REQUEST_ID.set(request_id)


def reset_request_id(token) -> None:
    _REQUEST_ID.reset(token)


def current_request_id() -> Optional[str]:
    return _REQUEST_ID.get()
