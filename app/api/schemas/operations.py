from __future__ import annotations

import base64
import binascii
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Single path segment; "." and ".." are rejected by the path builder.
SEGMENT_PATTERN = r"^[A-Za-z0-9._-]+$"


class _OperationBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)


class _FileWrite(_OperationBase):
    new_branch: str = Field(min_length=1, description="Branch the file is written to.")
    content: str
    content_encoding: Literal["base64", "text"] = "base64"
    commit_message: Optional[str] = None

    @model_validator(mode="after")
    def _content_decodes(self):
        self.content_bytes()
        return self

    def content_bytes(self) -> bytes:
        if self.content_encoding == "text":
            return self.content.encode("utf-8")
        try:
            return base64.b64decode(self.content, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"content is not valid base64: {e}") from e


class CreateBranchOperation(_OperationBase):
    operation: Literal["createBranch"]
    new_branch: str = Field(min_length=1)


class PushFileOperation(_FileWrite):
    operation: Literal["pushFile"]
    sor: str = Field(pattern=SEGMENT_PATTERN)
    feed_name: str = Field(pattern=SEGMENT_PATTERN)
    file_type: str = Field(min_length=1)


class AddFileOperation(_FileWrite):
    operation: Literal["addFile"]
    file_path: str = Field(min_length=1)


class UpdateFileOperation(_FileWrite):
    operation: Literal["updateFile"]
    file_path: str = Field(min_length=1)
    file_sha: Optional[str] = Field(default=None, description="Optional expected sha; must match the current file.")


class UpsertFileOperation(_FileWrite):
    operation: Literal["upsertFile"]
    file_path: str = Field(min_length=1)


class MergeBranchOperation(_OperationBase):
    operation: Literal["mergeBranch"]
    base_branch: str = Field(min_length=1)
    head_branch: str = Field(min_length=1)
    commit_message: Optional[str] = None


GitOperationModel = Union[
    CreateBranchOperation,
    PushFileOperation,
    AddFileOperation,
    UpdateFileOperation,
    UpsertFileOperation,
    MergeBranchOperation,
]

# Tagged union: the "operation" field selects the variant; unknown values fail validation.
GitOperationRequest = Annotated[GitOperationModel, Field(discriminator="operation")]


class PushJsonRequest(BaseModel):
    """Body of `POST /api/push-json`: create-or-update one file at an explicit path."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    repo_owner: str = Field(min_length=1)
    repo_name: str = Field(min_length=1)
    branch: str = Field(min_length=1)
    file_path: str = Field(min_length=1)
    content: str = Field(description="Base64-encoded file content.")
    commit_message: Optional[str] = None

    @field_validator("content")
    @classmethod
    def _content_is_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"content is not valid base64: {e}") from e
        return value

    def to_operation(self) -> UpsertFileOperation:
        return UpsertFileOperation(
            operation="upsertFile",
            owner=self.repo_owner,
            repo=self.repo_name,
            new_branch=self.branch,
            file_path=self.file_path,
            content=self.content,
            commit_message=self.commit_message or "Update JSON file via REST API",
        )
