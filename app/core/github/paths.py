from __future__ import annotations

from typing import Dict, Tuple, Union

from app.core.github.errors import InvalidPathSegment, UnsupportedArtifactKind
from app.core.github.models import ArtifactKind, LayoutKind

# artifact kind -> (folder under the artifact root, file extension)
ARTIFACT_LOCATIONS: Dict[ArtifactKind, Tuple[str, str]] = {
    ArtifactKind.JSON: ("config/dci/json", "json"),
    ArtifactKind.SQL: ("sql", "sql"),
    ArtifactKind.SCRIPTS: ("scripts", "ksh"),
    ArtifactKind.METADATA: ("metadata", "txt"),
    ArtifactKind.HQL: ("hql", "hql"),
    ArtifactKind.DDL: ("ddl", "ddl"),
}


def normalize_segment(value: str, field: str) -> str:
    """Strip and validate one path segment (sor, feed name)."""
    v = (value or "").strip()
    if not v or v in (".", "..") or "/" in v or "\\" in v:
        raise InvalidPathSegment(f"{field} must be a single non-empty path segment, got {value!r}")
    return v


def normalize_file_path(path: str) -> str:
    """Repository-relative file path: no leading or trailing slash, no empty, "." or ".." parts."""
    v = (path or "").strip().strip("/")
    parts = v.split("/")
    if not v or "\\" in v or any(p.strip() in ("", ".", "..") for p in parts):
        raise InvalidPathSegment(f"file path must be relative to the repository root, got {path!r}")
    return v


def normalize_artifact_kind(artifact_kind: Union[str, ArtifactKind]) -> ArtifactKind:
    if isinstance(artifact_kind, ArtifactKind):
        return artifact_kind
    raw = (artifact_kind or "").strip().lower()
    try:
        return ArtifactKind(raw)
    except ValueError:
        raise UnsupportedArtifactKind(str(artifact_kind)) from None


def artifact_root(sor: str, feed_name: str, layout: LayoutKind) -> str:
    """Directory the artifact-type folders hang off, with a trailing slash."""
    base = f"src/batch/{normalize_segment(sor, 'sor')}/"
    if layout is LayoutKind.NESTED_UNDER_FEED:
        base = f"{base}{normalize_segment(feed_name, 'feed_name')}/"
    return base


def build_path(
    sor: str,
    feed_name: str,
    artifact_kind: Union[str, ArtifactKind],
    layout: LayoutKind,
) -> str:
    """
    Repository-relative destination for one artifact.

        flat:   src/batch/{sor}/sql/{feed}.sql
        nested: src/batch/{sor}/{feed}/sql/{feed}.sql

    Pure: depends only on its arguments. Unknown kinds raise UnsupportedArtifactKind.
    """
    kind = normalize_artifact_kind(artifact_kind)
    feed = normalize_segment(feed_name, "feed_name")
    folder, ext = ARTIFACT_LOCATIONS[kind]
    return f"{artifact_root(sor, feed, layout)}{folder}/{feed}.{ext}"
