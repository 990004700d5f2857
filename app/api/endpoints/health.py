from __future__ import annotations

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from app.core.config import service_env
from app.core.observability.metrics import inc_named

router = APIRouter()


@router.get("/health/live")
def liveness():
    inc_named("health_live")
    return {"status": "alive"}


@router.get("/health/ready")
def readiness(request: Request):
    """
    Readiness reflects ability to serve traffic.
    In non-prod environments, missing OAuth credentials are not fatal.
    """
    inc_named("health_ready")

    problems: list[str] = []
    config = request.app.state.github_config
    if service_env() == "prod":
        if not config.oauth_configured:
            problems.append("missing_oauth_client_credentials")
        if not request.app.state.session_secret_configured:
            problems.append("missing_env:MEDIATOR_SESSION_SECRET")

    if problems:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "problems": problems},
        )

    return {"status": "ready"}
