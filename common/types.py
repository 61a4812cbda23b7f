"""Shared data type definitions (Role, Action, Chunk, FileMetadata, FileSummary)."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Tuple

from common.exceptions import ValidationError


class Role(str, Enum):
    """
    Roles an identity may hold. An identity may hold several at once.
    """
    ADMIN = "admin"
    PUBLISHER = "publisher"
    VIEWER = "viewer"

    @classmethod
    def parse(cls, value: str) -> "Role":
        """
        Convert a role name (case-insensitive) to a Role.

        Raises:
            ValidationError: If the name is not a known role
        """
        if isinstance(value, Role):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(f"Invalid role: {value}")


class Action(str, Enum):
    """
    Operations subject to permission checks.
    """
    UPLOAD_FILE = "upload_file"
    DOWNLOAD_FILE = "download_file"
    DELETE_FILE = "delete_file"
    VIEW_METADATA = "view_metadata"
    MANAGE_USERS = "manage_users"
    ASSIGN_ROLE = "assign_role"
    REVOKE_ROLE = "revoke_role"
    MANAGE_CONFIG = "manage_config"


@dataclass(frozen=True)
class Chunk:
    """
    One fixed-size slice of file content.
    """
    index: int
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class FileMetadata:
    """
    Complete metadata for a file in the store.
    """
    file_id: str
    owner: str
    filename: str
    size: int
    content_hash: str
    chunk_count: int
    uploaded_at: datetime
    chunk_checksums: Tuple[str, ...] = ()
    chunk_size: int = 0
    is_active: bool = True

    def with_active(self, active: bool) -> "FileMetadata":
        return replace(self, is_active=active)

    def summary(self) -> "FileSummary":
        return FileSummary(
            file_id=self.file_id,
            filename=self.filename,
            owner=self.owner,
            uploaded_at=self.uploaded_at,
        )


@dataclass(frozen=True)
class FileSummary:
    """
    Listing entry returned by list operations.
    """
    file_id: str
    filename: str
    owner: str
    uploaded_at: datetime
