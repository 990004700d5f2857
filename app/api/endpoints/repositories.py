from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_content_client
from app.core.github.errors import MalformedResponse
from app.core.github.models import RepositoryRef

router = APIRouter(prefix="/ghe", tags=["Repositories"])


def _pushable(repos: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    out: List[Dict[str, str]] = []
    for node in repos:
        perms = node.get("permissions") or {}
        if not perms.get("push"):
            continue
        owner = (node.get("owner") or {}).get("login")
        if not node.get("name") or not owner:
            raise MalformedResponse("Repository entry without name/owner")
        out.append({"name": node["name"], "owner": owner})
    return out


@router.get("/repositories")
def list_repositories(client=Depends(get_content_client)):
    """Repositories the user can push to."""
    return _pushable(client.list_user_repositories())


@router.get("/branches")
def list_branches(
    owner: str = Query(..., min_length=1),
    repo: str = Query(..., min_length=1),
    client=Depends(get_content_client),
):
    branches = client.list_branches(RepositoryRef(owner=owner, name=repo))
    names = []
    for b in branches:
        if not isinstance(b, dict) or "name" not in b:
            raise MalformedResponse("Branch entry without a name")
        names.append(b["name"])
    return names
