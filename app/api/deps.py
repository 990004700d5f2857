from __future__ import annotations

from fastapi import Depends, Request

from app.api.session import TokenStore, current_session_id
from app.core.config import GithubClientConfig
from app.core.github.client import GitHubContentClient
from app.core.github.errors import Unauthenticated
from app.core.github.oauth import OAuthExchanger


def get_github_config(request: Request) -> GithubClientConfig:
    return request.app.state.github_config


def get_token_store(request: Request) -> TokenStore:
    return request.app.state.token_store


def require_token(request: Request, store: TokenStore = Depends(get_token_store)) -> str:
    token = store.get(current_session_id(request))
    if not token:
        raise Unauthenticated("Not authenticated")
    return token


def get_content_client(
    token: str = Depends(require_token),
    config: GithubClientConfig = Depends(get_github_config),
) -> GitHubContentClient:
    return GitHubContentClient(token, config)


def get_oauth_exchanger(config: GithubClientConfig = Depends(get_github_config)) -> OAuthExchanger:
    return OAuthExchanger(config)
