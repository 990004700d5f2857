# app/core/github/client.py
from __future__ import annotations

import base64
import logging
import uuid
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from app.core.config import GithubClientConfig
from app.core.github.errors import (
    ConflictError,
    MalformedResponse,
    NotFoundError,
    RemoteFailure,
    Unauthenticated,
)
from app.core.github.models import BranchRef, ContentEntry, RepositoryRef
from app.core.observability.metrics import inc_github_call
from app.core.observability.request_context import current_request_id

log = logging.getLogger("mediator.github")

GITHUB_MEDIA_TYPE = "application/vnd.github.v3+json"
PAGE_SIZE = 100


def correlation_headers(client_id: str) -> Dict[str, str]:
    """
    Tracing headers required on every outbound call.
    X-REQUEST-ID is always fresh; X-CORRELATION-ID follows the inbound request when one is bound.
    """
    return {
        "X-REQUEST-ID": str(uuid.uuid4()),
        "X-CORRELATION-ID": current_request_id() or str(uuid.uuid4()),
        "X-CLIENT-ID": client_id,
    }


def _quote_path(path: str) -> str:
    return quote(path.strip("/"), safe="/")


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or "").strip()[:500] or resp.reason or ""
    if isinstance(body, dict):
        msg = str(body.get("message") or "")
        errors = body.get("errors")
        if errors:
            msg = f"{msg} {errors}".strip()
        return msg
    return str(body)[:500]


def _raise_for_status(resp: requests.Response, *, method: str, url: str) -> None:
    status = resp.status_code
    if 200 <= status < 300:
        return

    msg = _error_message(resp)
    detail = f"{method} {url} -> {status}: {msg}" if msg else f"{method} {url} -> {status}"

    if status == 404:
        raise NotFoundError(detail, status_code=status)
    if status == 409:
        raise ConflictError(detail, status_code=status)
    if status == 422:
        low = msg.lower()
        # Stale/missing sha on contents PUT, or a ref that already exists.
        if "sha" in low or "already exists" in low:
            raise ConflictError(detail, status_code=status)
    raise RemoteFailure(detail, status_code=status)


def _entry_from_json(node: Any) -> ContentEntry:
    if not isinstance(node, dict) or "name" not in node:
        raise MalformedResponse(f"Content entry without a name: {str(node)[:200]}")
    return ContentEntry(
        name=str(node["name"]),
        path=str(node.get("path") or node["name"]),
        sha=node.get("sha") or None,
        is_directory=node.get("type") == "dir",
    )


class GitHubContentClient:
    """
    Token-bound client for the Git provider's REST v3 API.

    One instance per inbound request. Every call is a single attempt; non-2xx
    responses are classified into NotFoundError / ConflictError / RemoteFailure.
    """

    def __init__(
        self,
        token: str,
        config: GithubClientConfig,
        session: Optional[requests.Session] = None,
    ):
        if not token:
            raise Unauthenticated("Not authenticated")
        self._token = token
        self.config = config
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"token {self._token}",
            "Accept": GITHUB_MEDIA_TYPE,
        }
        headers.update(correlation_headers(self.config.client_id_header))
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        url: Optional[str] = None,
    ) -> requests.Response:
        target = url or f"{self.config.api_base}{path}"
        try:
            resp = self.session.request(
                method,
                target,
                headers=self._headers(),
                params=params,
                json=json,
                timeout=self.config.timeout_seconds,
            )
        except requests.Timeout as e:
            inc_github_call(method, endpoint, "timeout")
            raise RemoteFailure(f"{method} {target} timed out after {self.config.timeout_seconds}s") from e
        except requests.RequestException as e:
            inc_github_call(method, endpoint, "error")
            raise RemoteFailure(f"{method} {target} failed: {e}") from e

        inc_github_call(method, endpoint, str(resp.status_code))
        log.debug("github call method=%s endpoint=%s status=%s", method, endpoint, resp.status_code)
        _raise_for_status(resp, method=method, url=target)
        return resp

    def _json(self, resp: requests.Response) -> Any:
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise MalformedResponse(f"Provider returned non-JSON body for {resp.url}") from e

    def _paginate(self, path: str, *, endpoint: str) -> List[Any]:
        items: List[Any] = []
        resp = self._request("GET", path, endpoint=endpoint, params={"per_page": PAGE_SIZE})
        while True:
            page = self._json(resp)
            if not isinstance(page, list):
                raise MalformedResponse(f"Expected a list from {endpoint}")
            items.extend(page)
            nxt = resp.links.get("next", {}).get("url")
            if not nxt:
                return items
            resp = self._request("GET", path, endpoint=endpoint, url=nxt)

    # ------------------------------------------------------------------
    # contents
    # ------------------------------------------------------------------

    def get_contents(self, repo: RepositoryRef, path: str, ref: Optional[str] = None) -> Any:
        params = {"ref": ref} if ref else None
        resp = self._request(
            "GET",
            f"/repos/{repo.owner}/{repo.name}/contents/{_quote_path(path)}",
            endpoint="contents",
            params=params,
        )
        return self._json(resp)

    def list_directory(self, repo: RepositoryRef, path: str, ref: Optional[str] = None) -> List[ContentEntry]:
        body = self.get_contents(repo, path, ref=ref)
        if not isinstance(body, list):
            raise MalformedResponse(f"{path} is not a directory in {repo.full_name}")
        return [_entry_from_json(node) for node in body]

    def get_file(self, repo: RepositoryRef, path: str, ref: Optional[str] = None) -> ContentEntry:
        body = self.get_contents(repo, path, ref=ref)
        if not isinstance(body, dict):
            raise MalformedResponse(f"{path} is a directory, not a file, in {repo.full_name}")
        entry = _entry_from_json(body)
        if not entry.sha:
            raise MalformedResponse(f"No sha in provider response for {path}")
        return entry

    def put_file(
        self,
        repo: RepositoryRef,
        path: str,
        *,
        content: bytes,
        message: str,
        branch: str,
        sha: Optional[str] = None,
    ) -> Any:
        payload: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": branch,
        }
        # The provider rejects creates carrying any sha key, even an empty one.
        if sha is not None:
            payload["sha"] = sha

        resp = self._request(
            "PUT",
            f"/repos/{repo.owner}/{repo.name}/contents/{_quote_path(path)}",
            endpoint="contents",
            json=payload,
        )
        return self._json(resp)

    # ------------------------------------------------------------------
    # repository / refs
    # ------------------------------------------------------------------

    def get_default_branch(self, repo: RepositoryRef) -> str:
        body = self._json(self._request("GET", f"/repos/{repo.owner}/{repo.name}", endpoint="repo"))
        default_branch = body.get("default_branch") if isinstance(body, dict) else None
        if not default_branch:
            raise MalformedResponse(f"No default_branch for {repo.full_name}")
        return str(default_branch)

    def get_branch(self, repo: RepositoryRef, name: str) -> BranchRef:
        body = self._json(
            self._request(
                "GET",
                f"/repos/{repo.owner}/{repo.name}/branches/{_quote_path(name)}",
                endpoint="branch",
            )
        )
        commit = body.get("commit") if isinstance(body, dict) else None
        sha = commit.get("sha") if isinstance(commit, dict) else None
        if not sha:
            raise MalformedResponse(f"No commit sha for branch {name} in {repo.full_name}")
        return BranchRef(name=name, head_sha=str(sha))

    def create_ref(self, repo: RepositoryRef, branch: str, sha: str) -> Any:
        resp = self._request(
            "POST",
            f"/repos/{repo.owner}/{repo.name}/git/refs",
            endpoint="refs",
            json={"ref": f"refs/heads/{branch}", "sha": sha},
        )
        return self._json(resp)

    def merge(self, repo: RepositoryRef, *, base: str, head: str, commit_message: str) -> Any:
        resp = self._request(
            "POST",
            f"/repos/{repo.owner}/{repo.name}/merges",
            endpoint="merges",
            json={"base": base, "head": head, "commit_message": commit_message},
        )
        return self._json(resp)

    def list_user_repositories(self) -> List[Dict[str, Any]]:
        return self._paginate("/user/repos", endpoint="user_repos")

    def list_branches(self, repo: RepositoryRef) -> List[Dict[str, Any]]:
        return self._paginate(f"/repos/{repo.owner}/{repo.name}/branches", endpoint="branches")
