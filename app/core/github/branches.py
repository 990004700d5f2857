from __future__ import annotations

import logging

from app.core.github.errors import NotFoundError
from app.core.github.models import BranchRef, BranchResult, MergeResult, RepositoryRef

log = logging.getLogger("mediator.branches")


def ensure_branch(client, repo: RepositoryRef, name: str) -> BranchResult:
    """
    Make sure `name` exists, branching from the default branch tip if needed.

    Existing branches are returned untouched with created=False. Failing to
    read the default branch or its head sha aborts the call.
    """
    try:
        existing = client.get_branch(repo, name)
    except NotFoundError:
        pass
    else:
        log.info("branch repo=%s name=%s already exists head=%s", repo.full_name, name, existing.head_sha)
        return BranchResult(branch=existing, created=False)

    default_branch = client.get_default_branch(repo)
    base = client.get_branch(repo, default_branch)
    resp = client.create_ref(repo, name, base.head_sha)
    log.info(
        "branch repo=%s name=%s created from %s@%s",
        repo.full_name,
        name,
        default_branch,
        base.head_sha,
    )
    return BranchResult(
        branch=BranchRef(name=name, head_sha=base.head_sha),
        created=True,
        provider_response=resp,
    )


def merge_branches(client, repo: RepositoryRef, base: str, head: str, commit_message: str) -> MergeResult:
    resp = client.merge(repo, base=base, head=head, commit_message=commit_message)
    if resp is None:
        # 204: base already contains head
        log.info("merge repo=%s %s <- %s nothing to merge", repo.full_name, base, head)
        return MergeResult(merged=False)
    log.info("merge repo=%s %s <- %s merged", repo.full_name, base, head)
    return MergeResult(merged=True, provider_response=resp)
