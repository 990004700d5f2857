from __future__ import annotations

import logging
import os
import secrets

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.api.endpoints import health
from app.api.endpoints import metrics as metrics_ep
from app.api.endpoints import oauth, operations, repositories
from app.api.middleware.error_shaping import SafeErrorMiddleware, github_error_response
from app.api.middleware.request_context import RequestContextMiddleware, SecurityHeadersMiddleware
from app.api.session import TokenStore
from app.core.config import load_github_config, service_env
from app.core.github.errors import GitHubError

log = logging.getLogger("mediator.app")

app = FastAPI(
    title="GHE Content Mediator API",
    version="0.1.0",
)

env = service_env()

app.state.github_config = load_github_config()
app.state.token_store = TokenStore()

# ------------------------------------------------------------
# Middleware stack (ORDER MATTERS)
# Starlette reverses add_middleware order: the LAST call is the OUTERMOST wrapper.
# Runtime order (outermost → innermost):
#   SafeErrorMiddleware → CORSMiddleware → SecurityHeaders → Session → RequestContext → handler
# ------------------------------------------------------------

app.add_middleware(RequestContextMiddleware)

_session_secret = (os.getenv("MEDIATOR_SESSION_SECRET") or "").strip()
app.state.session_secret_configured = bool(_session_secret)
if not _session_secret:
    if env == "prod":
        raise RuntimeError("MEDIATOR_SESSION_SECRET is required when MEDIATOR_ENV=prod")
    log.warning("MEDIATOR_SESSION_SECRET not set; using an ephemeral dev secret (sessions reset on restart)")
    _session_secret = secrets.token_urlsafe(32)

app.add_middleware(
    SessionMiddleware,
    secret_key=_session_secret,
    session_cookie="ghe_session",
    same_site="lax",
    https_only=(env == "prod"),
)

sec_enabled = (os.getenv("MEDIATOR_SECURITY_HEADERS_ENABLED") or ("true" if env == "prod" else "false")).strip().lower() in (
    "1",
    "true",
    "yes",
)
app.add_middleware(SecurityHeadersMiddleware, enabled=sec_enabled)

# CORS: the frontend calls with the session cookie, so origins must be explicit.
_cors_origins_raw = os.getenv("MEDIATOR_CORS_ORIGINS", "http://localhost:3000").strip()
_cors_origins = [o.strip() for o in _cors_origins_raw.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# SafeErrorMiddleware LAST = outermost (catches all exceptions from inner middleware)
app.add_middleware(SafeErrorMiddleware)


@app.exception_handler(GitHubError)
async def _github_error_handler(request: Request, exc: GitHubError):
    return github_error_response(request, exc)


# ------------------------------------------------------------
# Routes: /ghe/* kept for the existing frontend, /api/v1/ghe/* versioned
# ------------------------------------------------------------
for prefix in ("", "/api/v1"):
    app.include_router(oauth.router, prefix=prefix)
    app.include_router(repositories.router, prefix=prefix)
    app.include_router(operations.router, prefix=prefix)

app.include_router(operations.push_router)

app.include_router(health.router)
app.include_router(metrics_ep.router)


@app.get("/health")
def health_check():
    return {"status": "healthy"}
