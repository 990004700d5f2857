from .branches import ensure_branch, merge_branches
from .client import GitHubContentClient
from .layout import resolve_layout
from .models import (
    ArtifactKind,
    BranchRef,
    BranchResult,
    ContentEntry,
    LayoutKind,
    MergeResult,
    RepositoryRef,
    SorContext,
    UpsertAction,
    UpsertResult,
)
from .paths import build_path
from .upsert import create_file, push_artifact, update_file, upsert

__all__ = [
    "ArtifactKind",
    "BranchRef",
    "BranchResult",
    "ContentEntry",
    "GitHubContentClient",
    "LayoutKind",
    "MergeResult",
    "RepositoryRef",
    "SorContext",
    "UpsertAction",
    "UpsertResult",
    "build_path",
    "create_file",
    "ensure_branch",
    "merge_branches",
    "push_artifact",
    "resolve_layout",
    "update_file",
    "upsert",
]
