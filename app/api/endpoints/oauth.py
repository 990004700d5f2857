from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse

from app.api.deps import get_github_config, get_oauth_exchanger, get_token_store
from app.api.session import OAUTH_STATE_KEY, TokenStore, current_session_id, rotate_session_id
from app.core.config import GithubClientConfig
from app.core.github.errors import OAuthError
from app.core.github.oauth import OAuthExchanger

log = logging.getLogger("mediator.oauth")

router = APIRouter(prefix="/ghe", tags=["Auth"])


@router.get("/auth")
def redirect_to_provider(request: Request, exchanger: OAuthExchanger = Depends(get_oauth_exchanger)):
    state = str(uuid.uuid4())
    url = exchanger.authorize_url(state)
    request.session[OAUTH_STATE_KEY] = state
    return RedirectResponse(url, status_code=302)


@router.get("/callback")
def oauth_callback(
    request: Request,
    code: str = Query(""),
    state: str = Query(""),
    exchanger: OAuthExchanger = Depends(get_oauth_exchanger),
    store: TokenStore = Depends(get_token_store),
    config: GithubClientConfig = Depends(get_github_config),
):
    expected = request.session.pop(OAUTH_STATE_KEY, None)
    if not expected or expected != state:
        log.info("oauth callback rejected: state mismatch")
        raise OAuthError("Invalid state parameter")

    token = exchanger.exchange_code(code)

    store.drop(current_session_id(request))
    sid = rotate_session_id(request)
    store.put(sid, token)
    log.info("oauth callback ok; token stored for session")
    return RedirectResponse(config.frontend_url, status_code=302)


@router.post("/logout")
def logout(request: Request, store: TokenStore = Depends(get_token_store)):
    store.drop(current_session_id(request))
    request.session.clear()
    return {"status": "logged_out"}


@router.get("/session")
def session_status(request: Request, store: TokenStore = Depends(get_token_store)):
    return {"authenticated": store.get(current_session_id(request)) is not None}
