from __future__ import annotations

import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Body, Depends, Request

from app.api.deps import get_content_client
from app.api.schemas.operations import (
    AddFileOperation,
    CreateBranchOperation,
    GitOperationModel,
    MergeBranchOperation,
    PushFileOperation,
    PushJsonRequest,
    UpdateFileOperation,
    UpsertFileOperation,
)
from app.core.github.branches import ensure_branch, merge_branches
from app.core.github.errors import GitHubError
from app.core.github.models import RepositoryRef, SorContext
from app.core.github.upsert import create_file, push_artifact, update_file, upsert
from app.core.observability.audit import audit_operation
from app.core.observability.metrics import inc_operation

log = logging.getLogger("mediator.operations")

router = APIRouter(prefix="/ghe", tags=["Git operations"])

# Mounted once at /api, where the original push client posts.
push_router = APIRouter(prefix="/api", tags=["Git operations"])


def _audit_fields(op) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for name in ("new_branch", "file_path", "sor", "feed_name", "file_type", "base_branch", "head_branch"):
        value = getattr(op, name, None)
        if value is not None:
            fields[name] = value
    return fields


def run_operation(client, op) -> Dict[str, Any]:
    """Execute one operation variant against the provider; every variant is handled here."""
    repo = RepositoryRef(owner=op.owner, name=op.repo)

    if isinstance(op, CreateBranchOperation):
        return ensure_branch(client, repo, op.new_branch).to_dict()

    if isinstance(op, PushFileOperation):
        ctx = SorContext(sor=op.sor, feed_name=op.feed_name, artifact_kind=op.file_type)
        message = op.commit_message or f"Push {ctx.artifact_kind} for {op.sor}/{op.feed_name}"
        return push_artifact(client, repo, op.new_branch, ctx, op.content_bytes(), message).to_dict()

    if isinstance(op, AddFileOperation):
        message = op.commit_message or f"Add {op.file_path}"
        return create_file(client, repo, op.new_branch, op.file_path, op.content_bytes(), message).to_dict()

    if isinstance(op, UpdateFileOperation):
        message = op.commit_message or f"Update {op.file_path}"
        return update_file(
            client,
            repo,
            op.new_branch,
            op.file_path,
            op.content_bytes(),
            message,
            expected_sha=op.file_sha,
        ).to_dict()

    if isinstance(op, UpsertFileOperation):
        message = op.commit_message or f"Upsert {op.file_path}"
        return upsert(client, repo, op.new_branch, op.file_path, op.content_bytes(), message).to_dict()

    if isinstance(op, MergeBranchOperation):
        message = op.commit_message or f"Merge {op.head_branch} into {op.base_branch}"
        return merge_branches(client, repo, op.base_branch, op.head_branch, message).to_dict()

    raise TypeError(f"Unhandled operation model: {type(op).__name__}")


def execute_operation(request: Request, client, op) -> Dict[str, Any]:
    """Run `op` with metrics, audit and logging; domain errors propagate to the error handler."""
    rid = getattr(request.state, "request_id", None)
    repository = f"{op.owner}/{op.repo}"
    log.info("operation start op=%s repo=%s rid=%s", op.operation, repository, rid)

    try:
        result = run_operation(client, op)
    except GitHubError as e:
        inc_operation(op.operation, e.kind)
        audit_operation(op.operation, rid, repository, e.kind, extra={**_audit_fields(op), "error": e.message})
        log.info("operation failed op=%s repo=%s kind=%s rid=%s", op.operation, repository, e.kind, rid)
        raise

    inc_operation(op.operation, "ok")
    audit_operation(
        op.operation,
        rid,
        repository,
        "ok",
        extra={**_audit_fields(op), "action": result.get("action") or result.get("status"), "path": result.get("path")},
    )
    log.info("operation ok op=%s repo=%s rid=%s", op.operation, repository, rid)
    return {"operation": op.operation, "result": result}


@router.post("/operation")
def perform_operation(
    request: Request,
    op: Annotated[GitOperationModel, Body(discriminator="operation")],
    client=Depends(get_content_client),
) -> Dict[str, Any]:
    return execute_operation(request, client, op)


@push_router.post("/push-json")
def push_json(request: Request, body: PushJsonRequest, client=Depends(get_content_client)) -> Dict[str, Any]:
    """Create-or-update one file at a caller-given path (sha probed on the target branch)."""
    return execute_operation(request, client, body.to_operation())
