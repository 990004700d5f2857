from __future__ import annotations

from typing import Optional


class GitHubError(Exception):
    """Base for every failure surfaced by the content mediator."""

    kind = "github_error"
    http_status = 502

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class Unauthenticated(GitHubError):
    kind = "unauthenticated"
    http_status = 401


class NotFoundError(GitHubError):
    kind = "not_found"
    http_status = 404


class ConflictError(GitHubError):
    kind = "conflict"
    http_status = 409


class RemoteFailure(GitHubError):
    kind = "remote_failure"
    http_status = 502


class MalformedResponse(GitHubError):
    kind = "malformed_response"
    http_status = 502


class OAuthError(GitHubError):
    kind = "oauth_error"
    http_status = 401


class ConfigurationError(GitHubError):
    kind = "configuration_error"
    http_status = 500


class UnsupportedArtifactKind(GitHubError, ValueError):
    kind = "unsupported_artifact_kind"
    http_status = 400

    def __init__(self, artifact_kind: str):
        super().__init__(f"Unsupported artifact kind: {artifact_kind!r}")
        self.artifact_kind = artifact_kind


class InvalidPathSegment(GitHubError, ValueError):
    """A sor, feed or file path that cannot be placed under the repository root."""

    kind = "invalid_path_segment"
    http_status = 400


class LayoutResolutionError(GitHubError):
    """A layout probe failed for a reason other than the SOR root being absent."""

    kind = "layout_resolution_failed"

    def __init__(self, sor: str, cause: GitHubError):
        super().__init__(f"Could not resolve layout for sor={sor}: {cause.message}", status_code=cause.status_code)
        self.sor = sor
        self.cause = cause
        self.http_status = cause.http_status


def response_status_for(err: GitHubError) -> int:
    """
    HTTP status returned to our caller for a domain error.

    Provider auth and throttling statuses are passed through so the frontend can
    re-authenticate or back off; everything else uses the error's own status.
    """
    if isinstance(err, RemoteFailure) and err.status_code in (401, 403, 429):
        return int(err.status_code)
    return err.http_status
