from fastapi.testclient import TestClient

from app.api.main import app
from app.core.config import GithubClientConfig
from app.core.observability.metrics import reset_metrics


def test_health_live(client):
    r = client.get("/health/live")
    assert r.status_code == 200
    assert r.json() == {"status": "alive"}


def test_health_ready_in_dev_without_oauth(client, monkeypatch):
    monkeypatch.setenv("MEDIATOR_ENV", "dev")
    monkeypatch.setattr(app.state, "github_config", GithubClientConfig())
    r = client.get("/health/ready")
    assert r.status_code == 200
    assert r.json() == {"status": "ready"}


def test_health_ready_in_prod_requires_oauth_credentials(client, monkeypatch):
    monkeypatch.setenv("MEDIATOR_ENV", "prod")
    monkeypatch.setattr(app.state, "github_config", GithubClientConfig())
    r = client.get("/health/ready")
    assert r.status_code == 503
    body = r.json()
    assert body["status"] == "not_ready"
    assert "missing_oauth_client_credentials" in body["problems"]


def test_health_ready_in_prod_when_configured(client, monkeypatch):
    monkeypatch.setenv("MEDIATOR_ENV", "prod")
    monkeypatch.setattr(app.state, "github_config", GithubClientConfig(client_id="id", client_secret="secret"))
    r = client.get("/health/ready")
    assert r.status_code == 200


def test_health_metrics_increment(client):
    reset_metrics()
    client.get("/health/live")
    data = client.get("/metrics/snapshot").json()
    assert data.get("health_live", 0) == 1


def test_operation_outcomes_in_snapshot(authed_client):
    reset_metrics()
    body = {"operation": "createBranch", "owner": "acme", "repo": "x", "newBranch": "f1"}
    authed_client.post("/ghe/operation", json=body)
    data = authed_client.get("/metrics/snapshot").json()
    assert data.get("operation_createBranch_ok") == 1


def test_prometheus_metrics_endpoint(client):
    client.get("/health/live")
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "mediator_http_requests_total" in r.text
    assert "mediator_http_request_duration_seconds" in r.text
    assert "mediator_operations_total" in r.text
    assert "mediator_github_calls_total" in r.text


def test_safe_error_middleware_hides_traceback(authed_client, fake_github):
    fake_github.failures["get_branch"] = RuntimeError("boom at line 12")
    c = TestClient(app, raise_server_exceptions=False)
    r = c.post(
        "/ghe/operation",
        json={"operation": "createBranch", "owner": "acme", "repo": "x", "newBranch": "f"},
        headers={"X-Request-Id": "rid-500"},
    )
    assert r.status_code == 500
    assert r.json() == {"detail": "Internal Server Error", "request_id": "rid-500"}
    assert "Traceback" not in r.text
    assert "boom" not in r.text


def test_unknown_route_is_plain_404(client):
    r = client.get("/api/v1/does/not/exist")
    assert r.status_code == 404
    assert "Traceback" not in r.text


def test_security_headers_disabled_in_dev(client):
    r = client.get("/health/live")
    assert "X-Frame-Options" not in r.headers
