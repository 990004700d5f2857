from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ArtifactKind(str, Enum):
    JSON = "json"
    SQL = "sql"
    SCRIPTS = "scripts"
    METADATA = "metadata"
    HQL = "hql"
    DDL = "ddl"


class LayoutKind(str, Enum):
    # Type 1: artifact-type folders directly under src/batch/{sor}
    FLAT_UNDER_SOR = "flat"
    # Type 2: src/batch/{sor}/{feed}/ then artifact-type folders
    NESTED_UNDER_FEED = "nested"


class UpsertAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True)
class RepositoryRef:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class SorContext:
    sor: str
    feed_name: str
    artifact_kind: str

    def __post_init__(self):
        object.__setattr__(self, "artifact_kind", (self.artifact_kind or "").strip().lower())


@dataclass(frozen=True)
class ContentEntry:
    name: str
    path: str
    sha: Optional[str]
    is_directory: bool


@dataclass(frozen=True)
class BranchRef:
    name: str
    head_sha: str


@dataclass(frozen=True)
class BranchResult:
    branch: BranchRef
    created: bool
    provider_response: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "created" if self.created else "already_exists",
            "branch": self.branch.name,
            "head_sha": self.branch.head_sha,
            "provider_response": self.provider_response,
        }


@dataclass(frozen=True)
class UpsertResult:
    action: UpsertAction
    path: str
    provider_response: Any

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "path": self.path,
            "provider_response": self.provider_response,
        }


@dataclass(frozen=True)
class MergeResult:
    merged: bool
    provider_response: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "merged" if self.merged else "nothing_to_merge",
            "provider_response": self.provider_response,
        }
