from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import parse_qs, urlencode

import requests

from app.core.config import GithubClientConfig
from app.core.github.client import correlation_headers
from app.core.github.errors import ConfigurationError, OAuthError, RemoteFailure

log = logging.getLogger("mediator.oauth")


class OAuthExchanger:
    """
    Authorization-code flow against the provider's OAuth endpoints.

    Client id/secret come from the config it is constructed with. Tokens are
    returned to the caller and never logged.
    """

    def __init__(self, config: GithubClientConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    def authorize_url(self, state: str) -> str:
        if not self.config.client_id:
            raise ConfigurationError("OAuth client id is not configured")
        query = urlencode(
            {
                "client_id": self.config.client_id,
                "redirect_uri": self.config.redirect_uri,
                "scope": self.config.scope,
                "state": state,
            }
        )
        return f"{self.config.oauth_base}/login/oauth/authorize?{query}"

    def exchange_code(self, code: str) -> str:
        if not code:
            raise OAuthError("Missing authorization code")
        if not self.config.oauth_configured:
            raise ConfigurationError("OAuth client credentials are not configured")

        url = f"{self.config.oauth_base}/login/oauth/access_token"
        headers = {"Accept": "application/json"}
        headers.update(correlation_headers(self.config.client_id_header))
        data = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "code": code,
            "redirect_uri": self.config.redirect_uri,
        }
        try:
            resp = self.session.post(url, data=data, headers=headers, timeout=self.config.timeout_seconds)
        except requests.RequestException as e:
            raise RemoteFailure(f"OAuth token exchange failed: {e}") from e

        if not (200 <= resp.status_code < 300):
            raise RemoteFailure(f"OAuth token exchange returned {resp.status_code}", status_code=resp.status_code)

        fields = _parse_token_body(resp)
        if fields.get("error"):
            log.info("oauth exchange rejected error=%s", fields.get("error"))
            raise OAuthError(f"OAuth exchange rejected: {fields.get('error_description') or fields['error']}")

        token = fields.get("access_token")
        if not token:
            raise OAuthError("No access token in OAuth response")
        log.info("oauth exchange ok scope=%s", fields.get("scope"))
        return str(token)


def _parse_token_body(resp: requests.Response) -> dict:
    # JSON when Accept is honoured; some GHE versions still answer form-encoded.
    try:
        body = resp.json()
        if isinstance(body, dict):
            return body
    except ValueError:
        pass
    parsed = parse_qs(resp.text or "")
    return {k: v[0] for k, v in parsed.items() if v}
