"""Pydantic schemas for file operation endpoints."""

from typing import List
from pydantic import BaseModel


class UploadFileResponse(BaseModel):
    """Response model for file upload."""
    file_id: str
    filename: str
    size: int
    content_hash: str
    chunk_count: int


class FileSummaryResponse(BaseModel):
    """One entry of a file listing."""
    file_id: str
    filename: str
    owner: str
    uploaded_at: str


class ListFilesResponse(BaseModel):
    """Response model for file listing."""
    files: List[FileSummaryResponse]


class FileMetadataResponse(BaseModel):
    """Response model for full file metadata."""
    file_id: str
    owner: str
    filename: str
    size: int
    content_hash: str
    chunk_count: int
    chunk_size: int
    uploaded_at: str
    is_active: bool


class DeleteFileResponse(BaseModel):
    file_id: str
    deleted: bool


class SetActiveRequest(BaseModel):
    active: bool


class IntegrityResponse(BaseModel):
    """Result of re-verifying a stored file against its upload checksums."""
    file_id: str
    valid: bool


class GarbageCollectResponse(BaseModel):
    removed: int


class AuditResponse(BaseModel):
    """Content records whose bytes no longer match their digest."""
    corrupted: List[str]


class StorageStatsResponse(BaseModel):
    files: int
    active_files: int
    inactive_files: int
    content_records: int
    logical_bytes: int
    stored_bytes: int
    principals: int
    admins: int
