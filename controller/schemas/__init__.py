"""Pydantic schemas for API requests and responses."""

from controller.schemas.common import ErrorResponse
from controller.schemas.config import ConfigResponse
from controller.schemas.files import (
    AuditResponse,
    DeleteFileResponse,
    FileMetadataResponse,
    FileSummaryResponse,
    GarbageCollectResponse,
    IntegrityResponse,
    ListFilesResponse,
    SetActiveRequest,
    StorageStatsResponse,
    UploadFileResponse
)
from controller.schemas.roles import (
    PrincipalsResponse,
    RoleChangeRequest,
    RolesResponse
)

__all__ = [
    "ErrorResponse",
    "ConfigResponse",
    "AuditResponse",
    "StorageStatsResponse",
    "DeleteFileResponse",
    "FileMetadataResponse",
    "FileSummaryResponse",
    "GarbageCollectResponse",
    "IntegrityResponse",
    "ListFilesResponse",
    "SetActiveRequest",
    "UploadFileResponse",
    "PrincipalsResponse",
    "RoleChangeRequest",
    "RolesResponse"
]
