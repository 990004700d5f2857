import hashlib
import json
import os

import pytest
import requests
from fastapi.testclient import TestClient

# Make runtime behave deterministically in tests (must precede the app import)
os.environ.setdefault("MEDIATOR_ENV", "dev")
os.environ.setdefault("MEDIATOR_SESSION_SECRET", "test-session-secret")

from app.api.deps import get_content_client  # noqa: E402
from app.api.main import app  # noqa: E402
from app.core.github.errors import ConflictError, MalformedResponse, NotFoundError  # noqa: E402
from app.core.github.models import BranchRef, ContentEntry  # noqa: E402


def _sha(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


class FakeGitHub:
    """
    In-memory stand-in for GitHubContentClient.

    Files live per branch; `writes` records every mutating call and `calls`
    every call, so tests can assert what was (not) sent.
    """

    def __init__(self, default_branch: str = "main"):
        self.default_branch = default_branch
        self.branches = {default_branch: "base000"}
        self.files = {}  # (branch, path) -> (content, sha)
        self.calls = []
        self.writes = []
        self.failures = {}  # method name -> exception
        self.merge_response = {"sha": "merge123"}

    # helpers -----------------------------------------------------------

    def seed(self, path: str, content: bytes = b"x", branch: str = None, sha: str = None):
        branch = branch or self.default_branch
        self.files[(branch, path)] = (content, sha or _sha(content))

    def _maybe_fail(self, name: str):
        self.calls.append(name)
        err = self.failures.get(name)
        if err is not None:
            raise err

    # contents ----------------------------------------------------------

    def list_directory(self, repo, path, ref=None):
        self._maybe_fail("list_directory")
        branch = ref or self.default_branch
        prefix = path.rstrip("/") + "/"
        children = {}
        for (b, p) in self.files:
            if b != branch or not p.startswith(prefix):
                continue
            rest = p[len(prefix):]
            name, _, tail = rest.partition("/")
            children[name] = bool(tail)
        if not children:
            raise NotFoundError(f"{path} not found")
        return [
            ContentEntry(name=n, path=prefix + n, sha=None if is_dir else "f" + n, is_directory=is_dir)
            for n, is_dir in sorted(children.items())
        ]

    def get_file(self, repo, path, ref=None):
        self._maybe_fail("get_file")
        branch = ref or self.default_branch
        if (branch, path) not in self.files:
            raise NotFoundError(f"{path} not found on {branch}")
        _, sha = self.files[(branch, path)]
        return ContentEntry(name=path.rsplit("/", 1)[-1], path=path, sha=sha, is_directory=False)

    def put_file(self, repo, path, *, content, message, branch, sha=None):
        self._maybe_fail("put_file")
        self.writes.append(
            {"op": "put_file", "path": path, "branch": branch, "message": message, "sha": sha, "content": content}
        )
        existing = self.files.get((branch, path))
        if sha is None and existing is not None:
            raise ConflictError("Invalid request. \"sha\" wasn't supplied.", status_code=422)
        if sha is not None and (existing is None or existing[1] != sha):
            raise ConflictError(f"{path} does not match {sha}", status_code=409)
        new_sha = _sha(content)
        self.files[(branch, path)] = (content, new_sha)
        return {"content": {"path": path, "sha": new_sha}, "commit": {"sha": "c" + new_sha[:8]}}

    # refs --------------------------------------------------------------

    def get_default_branch(self, repo):
        self._maybe_fail("get_default_branch")
        return self.default_branch

    def get_branch(self, repo, name):
        self._maybe_fail("get_branch")
        if name not in self.branches:
            raise NotFoundError(f"Branch not found: {name}")
        return BranchRef(name=name, head_sha=self.branches[name])

    def create_ref(self, repo, branch, sha):
        self._maybe_fail("create_ref")
        self.writes.append({"op": "create_ref", "ref": f"refs/heads/{branch}", "sha": sha})
        self.branches[branch] = sha
        return {"ref": f"refs/heads/{branch}", "object": {"sha": sha}}

    def merge(self, repo, *, base, head, commit_message):
        self._maybe_fail("merge")
        self.writes.append({"op": "merge", "base": base, "head": head, "message": commit_message})
        return self.merge_response

    def list_user_repositories(self):
        self._maybe_fail("list_user_repositories")
        return [
            {"name": "batch-jobs", "owner": {"login": "acme"}, "permissions": {"push": True}},
            {"name": "read-only", "owner": {"login": "acme"}, "permissions": {"push": False}},
        ]

    def list_branches(self, repo):
        self._maybe_fail("list_branches")
        return [{"name": n, "commit": {"sha": s}} for n, s in sorted(self.branches.items())]


class FakeSession:
    """Replaces requests.Session: replays queued responses and records calls."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    def _next(self):
        r = self.responses.pop(0)
        if isinstance(r, Exception):
            raise r
        return r

    def request(self, method, url, headers=None, params=None, json=None, timeout=None):
        self.calls.append(
            {"method": method, "url": url, "headers": headers or {}, "params": params, "json": json, "timeout": timeout}
        )
        return self._next()

    def post(self, url, data=None, headers=None, timeout=None):
        self.calls.append({"method": "POST", "url": url, "headers": headers or {}, "data": data, "timeout": timeout})
        return self._next()


def make_response(status=200, body=None, headers=None, text=None, url="https://api.test/x"):
    r = requests.Response()
    r.status_code = status
    r.url = url
    r.encoding = "utf-8"
    if body is not None:
        r._content = json.dumps(body).encode("utf-8")
        r.headers["Content-Type"] = "application/json"
    else:
        r._content = (text or "").encode("utf-8")
    r.headers.update(headers or {})
    return r


@pytest.fixture(autouse=True)
def _audit_to_tmp(tmp_path, monkeypatch):
    monkeypatch.setenv("MEDIATOR_AUDIT_PATH", str(tmp_path / "audit.log"))


@pytest.fixture()
def fake_github():
    return FakeGitHub()


@pytest.fixture()
def fake_session():
    return FakeSession


@pytest.fixture()
def response_factory():
    return make_response


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
def authed_client(fake_github):
    app.dependency_overrides[get_content_client] = lambda: fake_github
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_content_client, None)
