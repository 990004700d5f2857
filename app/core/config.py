from __future__ import annotations

import os
from dataclasses import dataclass


def _env(name: str, default: str) -> str:
    return (os.getenv(name) or default).strip()


@dataclass(frozen=True)
class GithubClientConfig:
    """
    Connection + OAuth settings for the Git provider.

    Built once at startup and handed to the collaborators that need it; nothing
    reads client credentials from process-wide state after that.
    """

    api_base: str = "https://api.github.com"
    oauth_base: str = "https://github.com"
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "http://localhost:8080/ghe/callback"
    scope: str = "repo"
    frontend_url: str = "http://localhost:3000/githubintegrationpage"
    client_id_header: str = "UTCAP"
    timeout_seconds: float = 20.0

    def __post_init__(self):
        object.__setattr__(self, "api_base", self.api_base.rstrip("/"))
        object.__setattr__(self, "oauth_base", self.oauth_base.rstrip("/"))

    @property
    def oauth_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


def load_github_config() -> GithubClientConfig:
    timeout_raw = _env("MEDIATOR_GITHUB_TIMEOUT_SECONDS", "20")
    try:
        timeout = float(timeout_raw)
    except ValueError as e:
        raise ValueError(f"Invalid MEDIATOR_GITHUB_TIMEOUT_SECONDS: {timeout_raw!r}") from e
    if timeout <= 0:
        raise ValueError("MEDIATOR_GITHUB_TIMEOUT_SECONDS must be positive")

    return GithubClientConfig(
        api_base=_env("MEDIATOR_GITHUB_API_BASE", "https://api.github.com"),
        oauth_base=_env("MEDIATOR_GITHUB_OAUTH_BASE", "https://github.com"),
        client_id=_env("MEDIATOR_GITHUB_CLIENT_ID", ""),
        client_secret=_env("MEDIATOR_GITHUB_CLIENT_SECRET", ""),
        redirect_uri=_env("MEDIATOR_GITHUB_REDIRECT_URI", "http://localhost:8080/ghe/callback"),
        scope=_env("MEDIATOR_GITHUB_SCOPE", "repo"),
        frontend_url=_env("MEDIATOR_FRONTEND_URL", "http://localhost:3000/githubintegrationpage"),
        client_id_header=_env("MEDIATOR_CLIENT_ID_HEADER", "UTCAP"),
        timeout_seconds=timeout,
    )


def service_env() -> str:
    return _env("MEDIATOR_ENV", "dev").lower()
