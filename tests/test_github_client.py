import base64

import pytest
import requests

from app.core.config import GithubClientConfig
from app.core.github.client import GitHubContentClient
from app.core.github.errors import (
    ConflictError,
    MalformedResponse,
    NotFoundError,
    RemoteFailure,
    Unauthenticated,
)
from app.core.github.models import RepositoryRef
from app.core.observability.request_context import bind_request_id, reset_request_id

REPO = RepositoryRef(owner="acme", name="batch-jobs")
CONFIG = GithubClientConfig(api_base="https://ghe.test/api/v3/", client_id_header="UTCAP", timeout_seconds=5)


def _client(session):
    return GitHubContentClient("tok123", CONFIG, session=session)


def test_requires_token():
    with pytest.raises(Unauthenticated):
        GitHubContentClient("", CONFIG)


def test_auth_and_correlation_headers(fake_session, response_factory):
    s = fake_session([response_factory(200, {"name": "a.sql", "path": "a.sql", "sha": "s1", "type": "file"})] * 2)
    c = _client(s)

    c.get_file(REPO, "a.sql", ref="dev")
    ctx = bind_request_id("inbound-rid")
    try:
        c.get_file(REPO, "a.sql", ref="dev")
    finally:
        reset_request_id(ctx)

    first, second = s.calls
    assert first["url"] == "https://ghe.test/api/v3/repos/acme/batch-jobs/contents/a.sql"
    assert first["params"] == {"ref": "dev"}
    assert first["timeout"] == 5
    h = first["headers"]
    assert h["Authorization"] == "token tok123"
    assert h["Accept"] == "application/vnd.github.v3+json"
    assert h["X-CLIENT-ID"] == "UTCAP"
    assert h["X-REQUEST-ID"] != second["headers"]["X-REQUEST-ID"]
    assert second["headers"]["X-CORRELATION-ID"] == "inbound-rid"


def test_create_payload_has_no_sha_key(fake_session, response_factory):
    s = fake_session([response_factory(201, {"content": {"sha": "new"}})])
    resp = _client(s).put_file(REPO, "src/x.sql", content=b"select 1", message="m", branch="dev")
    payload = s.calls[0]["json"]
    assert "sha" not in payload
    assert payload == {"message": "m", "content": base64.b64encode(b"select 1").decode(), "branch": "dev"}
    assert resp == {"content": {"sha": "new"}}


def test_update_payload_carries_sha(fake_session, response_factory):
    s = fake_session([response_factory(200, {"content": {"sha": "new"}})])
    _client(s).put_file(REPO, "src/x.sql", content=b"1", message="m", branch="dev", sha="abc123")
    assert s.calls[0]["method"] == "PUT"
    assert s.calls[0]["json"]["sha"] == "abc123"


@pytest.mark.parametrize(
    "status,body,exc",
    [
        (404, {"message": "Not Found"}, NotFoundError),
        (409, {"message": "x.sql does not match abc"}, ConflictError),
        (422, {"message": "Invalid request. \"sha\" wasn't supplied."}, ConflictError),
        (422, {"message": "Validation Failed"}, RemoteFailure),
        (403, {"message": "API rate limit exceeded"}, RemoteFailure),
        (500, None, RemoteFailure),
    ],
)
def test_status_classification(fake_session, response_factory, status, body, exc):
    s = fake_session([response_factory(status, body, text="oops")])
    with pytest.raises(exc) as ei:
        _client(s).get_contents(REPO, "x.sql")
    assert ei.value.status_code == status


def test_timeout_is_remote_failure(fake_session):
    s = fake_session([requests.Timeout("slow")])
    with pytest.raises(RemoteFailure):
        _client(s).get_default_branch(REPO)


def test_connection_error_is_remote_failure(fake_session):
    s = fake_session([requests.ConnectionError("refused")])
    with pytest.raises(RemoteFailure):
        _client(s).get_branch(REPO, "main")


def test_list_directory_parses_entries(fake_session, response_factory):
    body = [
        {"name": "sql", "path": "src/batch/sor1/sql", "sha": "d1", "type": "dir"},
        {"name": "README.md", "path": "src/batch/sor1/README.md", "sha": "f1", "type": "file"},
    ]
    s = fake_session([response_factory(200, body)])
    entries = _client(s).list_directory(REPO, "src/batch/sor1")
    assert [(e.name, e.is_directory) for e in entries] == [("sql", True), ("README.md", False)]
    assert s.calls[0]["params"] is None


def test_list_directory_on_file_is_malformed(fake_session, response_factory):
    s = fake_session([response_factory(200, {"name": "sor1", "sha": "f", "type": "file"})])
    with pytest.raises(MalformedResponse):
        _client(s).list_directory(REPO, "src/batch/sor1")


def test_get_file_without_sha_is_malformed(fake_session, response_factory):
    s = fake_session([response_factory(200, {"name": "x.sql", "type": "file"})])
    with pytest.raises(MalformedResponse):
        _client(s).get_file(REPO, "x.sql", ref="dev")


def test_get_file_on_directory_is_malformed(fake_session, response_factory):
    s = fake_session([response_factory(200, [{"name": "x.sql", "sha": "1", "type": "file"}])])
    with pytest.raises(MalformedResponse):
        _client(s).get_file(REPO, "dir", ref="dev")


def test_default_branch_and_branch_sha(fake_session, response_factory):
    s = fake_session(
        [
            response_factory(200, {"default_branch": "develop"}),
            response_factory(200, {"name": "develop", "commit": {"sha": "tip1"}}),
        ]
    )
    c = _client(s)
    assert c.get_default_branch(REPO) == "develop"
    assert c.get_branch(REPO, "develop").head_sha == "tip1"
    assert s.calls[1]["url"].endswith("/repos/acme/batch-jobs/branches/develop")


def test_missing_default_branch_is_malformed(fake_session, response_factory):
    s = fake_session([response_factory(200, {"name": "batch-jobs"})])
    with pytest.raises(MalformedResponse):
        _client(s).get_default_branch(REPO)


def test_create_ref_and_merge_payloads(fake_session, response_factory):
    s = fake_session([response_factory(201, {"ref": "refs/heads/f"}), response_factory(204)])
    c = _client(s)
    c.create_ref(REPO, "f", "tip1")
    assert c.merge(REPO, base="main", head="f", commit_message="m") is None
    assert s.calls[0]["json"] == {"ref": "refs/heads/f", "sha": "tip1"}
    assert s.calls[1]["json"] == {"base": "main", "head": "f", "commit_message": "m"}
    assert s.calls[1]["url"].endswith("/merges")


def test_pagination_follows_link_header(fake_session, response_factory):
    nxt = "https://ghe.test/api/v3/user/repos?per_page=100&page=2"
    s = fake_session(
        [
            response_factory(200, [{"name": "a"}], headers={"Link": f'<{nxt}>; rel="next"'}),
            response_factory(200, [{"name": "b"}]),
        ]
    )
    repos = _client(s).list_user_repositories()
    assert [r["name"] for r in repos] == ["a", "b"]
    assert s.calls[0]["params"] == {"per_page": 100}
    assert s.calls[1]["url"] == nxt


def test_non_json_body_is_malformed(fake_session, response_factory):
    s = fake_session([response_factory(200, text="<html>")])
    with pytest.raises(MalformedResponse):
        _client(s).get_default_branch(REPO)
