from __future__ import annotations

import logging

from app.core.github.errors import GitHubError, LayoutResolutionError, NotFoundError
from app.core.github.models import LayoutKind, RepositoryRef
from app.core.github.paths import normalize_segment

log = logging.getLogger("mediator.layout")

# Folder names that mark a SOR as Type 1 (flat) when present under src/batch/{sor}
FLAT_MARKER_FOLDERS = frozenset({"config", "sql", "scripts", "metadata", "hql", "ddl"})


def sor_root(sor: str) -> str:
    return f"src/batch/{normalize_segment(sor, 'sor')}"


def classify_listing(names) -> LayoutKind:
    for name in names:
        if str(name).lower() in FLAT_MARKER_FOLDERS:
            return LayoutKind.FLAT_UNDER_SOR
    return LayoutKind.NESTED_UNDER_FEED


def resolve_layout(client, repo: RepositoryRef, sor: str) -> LayoutKind:
    """
    Classify how src/batch/{sor} is organised, probing the default branch.

    Absent root -> NESTED_UNDER_FEED (new SOR, organised per feed).
    Any other probe failure is raised as LayoutResolutionError; it is never
    mapped onto a layout.
    """
    path = sor_root(sor)
    try:
        entries = client.list_directory(repo, path)
    except NotFoundError:
        log.info("layout repo=%s sor=%s root missing -> %s", repo.full_name, sor, LayoutKind.NESTED_UNDER_FEED.value)
        return LayoutKind.NESTED_UNDER_FEED
    except GitHubError as e:
        raise LayoutResolutionError(sor, e) from e

    layout = classify_listing(entry.name for entry in entries)
    log.info("layout repo=%s sor=%s entries=%d -> %s", repo.full_name, sor, len(entries), layout.value)
    return layout
