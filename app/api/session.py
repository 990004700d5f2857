from __future__ import annotations

import threading
import uuid
from typing import Dict, Optional

from starlette.requests import Request

SESSION_ID_KEY = "sid"
OAUTH_STATE_KEY = "oauth_state"


class TokenStore:
    """
    Server-side bearer tokens keyed by session id.
    The session cookie only ever carries the opaque id.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._tokens: Dict[str, str] = {}

    def get(self, sid: Optional[str]) -> Optional[str]:
        if not sid:
            return None
        with self._lock:
            return self._tokens.get(sid)

    def put(self, sid: str, token: str) -> None:
        with self._lock:
            self._tokens[sid] = token

    def drop(self, sid: Optional[str]) -> None:
        if not sid:
            return
        with self._lock:
            self._tokens.pop(sid, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)


def current_session_id(request: Request) -> Optional[str]:
    return request.session.get(SESSION_ID_KEY)


def rotate_session_id(request: Request) -> str:
    """New id after login so a pre-auth cookie never maps to a token."""
    sid = uuid.uuid4().hex
    request.session[SESSION_ID_KEY] = sid
    return sid
