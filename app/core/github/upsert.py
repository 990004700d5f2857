from __future__ import annotations

import logging
from typing import Optional

from app.core.github.errors import ConflictError, NotFoundError
from app.core.github.layout import resolve_layout
from app.core.github.models import RepositoryRef, SorContext, UpsertAction, UpsertResult
from app.core.github.paths import build_path, normalize_artifact_kind, normalize_file_path, normalize_segment

log = logging.getLogger("mediator.upsert")


def upsert(
    client,
    repo: RepositoryRef,
    branch: str,
    path: str,
    content: bytes,
    commit_message: str,
) -> UpsertResult:
    """
    Create-or-update one file on `branch`.

    Probe path@branch; an existing sha routes to an update carrying that sha,
    a 404 routes to a create with no sha key. Probe and write are separate
    calls, so a concurrent writer in between makes the write fail with
    ConflictError; that is terminal for this call.
    """
    path = normalize_file_path(path)
    try:
        existing = client.get_file(repo, path, ref=branch)
    except NotFoundError:
        log.info("upsert repo=%s branch=%s path=%s not present -> create", repo.full_name, branch, path)
        resp = client.put_file(repo, path, content=content, message=commit_message, branch=branch)
        return UpsertResult(action=UpsertAction.CREATED, path=path, provider_response=resp)

    log.info("upsert repo=%s branch=%s path=%s sha=%s -> update", repo.full_name, branch, path, existing.sha)
    resp = client.put_file(
        repo,
        path,
        content=content,
        message=commit_message,
        branch=branch,
        sha=existing.sha,
    )
    return UpsertResult(action=UpsertAction.UPDATED, path=path, provider_response=resp)


def push_artifact(
    client,
    repo: RepositoryRef,
    branch: str,
    context: SorContext,
    content: bytes,
    commit_message: str,
) -> UpsertResult:
    """Resolve the SOR layout once, compute the artifact path, then upsert it."""
    # Reject unknown kinds and bad segments before touching the network; the
    # probe and the written path use the same normalized sor.
    kind = normalize_artifact_kind(context.artifact_kind)
    sor = normalize_segment(context.sor, "sor")
    feed = normalize_segment(context.feed_name, "feed_name")
    layout = resolve_layout(client, repo, sor)
    path = build_path(sor, feed, kind, layout)
    log.info(
        "push repo=%s sor=%s feed=%s kind=%s layout=%s path=%s",
        repo.full_name,
        sor,
        feed,
        kind.value,
        layout.value,
        path,
    )
    return upsert(client, repo, branch, path, content, commit_message)


def create_file(
    client,
    repo: RepositoryRef,
    branch: str,
    path: str,
    content: bytes,
    commit_message: str,
) -> UpsertResult:
    """Create-only write; the provider rejects it with ConflictError if the file exists."""
    path = normalize_file_path(path)
    resp = client.put_file(repo, path, content=content, message=commit_message, branch=branch)
    return UpsertResult(action=UpsertAction.CREATED, path=path, provider_response=resp)


def update_file(
    client,
    repo: RepositoryRef,
    branch: str,
    path: str,
    content: bytes,
    commit_message: str,
    expected_sha: Optional[str] = None,
) -> UpsertResult:
    """
    Update-only write. The sha sent is always the one just read from path@branch;
    `expected_sha`, when given, must still match it.
    """
    path = normalize_file_path(path)
    existing = client.get_file(repo, path, ref=branch)
    if expected_sha and expected_sha != existing.sha:
        raise ConflictError(
            f"{path} on {branch} changed: expected sha {expected_sha}, found {existing.sha}"
        )
    resp = client.put_file(
        repo,
        path,
        content=content,
        message=commit_message,
        branch=branch,
        sha=existing.sha,
    )
    return UpsertResult(action=UpsertAction.UPDATED, path=path, provider_response=resp)
