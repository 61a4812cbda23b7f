"""File operation API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from common.types import FileMetadata
from controller.auth import get_current_principal, get_file_service
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
from controller.services.file_service import FileService

router = APIRouter(prefix="/files", tags=["Files"])


def _metadata_response(metadata: FileMetadata) -> FileMetadataResponse:
    return FileMetadataResponse(
        file_id=metadata.file_id,
        owner=metadata.owner,
        filename=metadata.filename,
        size=metadata.size,
        content_hash=metadata.content_hash,
        chunk_count=metadata.chunk_count,
        chunk_size=metadata.chunk_size,
        uploaded_at=metadata.uploaded_at.isoformat(),
        is_active=metadata.is_active
    )


@router.post("", response_model=UploadFileResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile = File(...),
    filename: Optional[str] = Form(None),
    current_principal: str = Depends(get_current_principal),
    file_service: FileService = Depends(get_file_service)
):
    """
    Upload a file.

    Parameters:
        - file: File to upload (multipart/form-data)
        - filename: Optional name overriding the uploaded file's own name
        - X-Principal-Id header: caller identity (required)

    Returns:
        - file_id: Handle of the stored file
        - filename, size, content_hash, chunk_count

    Raises:
        - 400: Invalid filename, empty or oversized file
        - 403: Caller is not a Publisher or Admin
        - 503: Uploads disabled
    """
    content = await file.read()
    metadata = file_service.upload_file(
        current_principal,
        filename if filename is not None else (file.filename or ""),
        content
    )

    return UploadFileResponse(
        file_id=metadata.file_id,
        filename=metadata.filename,
        size=metadata.size,
        content_hash=metadata.content_hash,
        chunk_count=metadata.chunk_count
    )


@router.get("", response_model=ListFilesResponse)
async def list_files(
    scope: Optional[str] = Query(None, description="'all' (Admins only) or 'own'"),
    current_principal: str = Depends(get_current_principal),
    file_service: FileService = Depends(get_file_service)
):
    """
    List active files visible to the caller.
    """
    summaries = file_service.list_files(current_principal, scope)

    return ListFilesResponse(
        files=[
            FileSummaryResponse(
                file_id=s.file_id,
                filename=s.filename,
                owner=s.owner,
                uploaded_at=s.uploaded_at.isoformat()
            )
            for s in summaries
        ]
    )


@router.post("/gc", response_model=GarbageCollectResponse)
async def collect_garbage(
    current_principal: str = Depends(get_current_principal),
    file_service: FileService = Depends(get_file_service)
):
    """
    Remove content records no longer referenced by any file. Admin only.
    """
    removed = file_service.collect_garbage(current_principal)
    return GarbageCollectResponse(removed=removed)


@router.get("/audit", response_model=AuditResponse)
async def audit_contents(
    current_principal: str = Depends(get_current_principal),
    file_service: FileService = Depends(get_file_service)
):
    """
    Re-hash every stored content record. Admin only.
    """
    return AuditResponse(corrupted=file_service.audit_contents(current_principal))


@router.get("/stats", response_model=StorageStatsResponse)
async def storage_stats(
    current_principal: str = Depends(get_current_principal),
    file_service: FileService = Depends(get_file_service)
):
    return StorageStatsResponse(**file_service.storage_stats(current_principal))


@router.get("/{file_id}")
async def download_file(
    file_id: str,
    current_principal: str = Depends(get_current_principal),
    file_service: FileService = Depends(get_file_service)
):
    """
    Download a file's content.

    Raises:
        - 403: Caller has no download permission and does not own the file
        - 404: Unknown or inactive file
    """
    filename, content = file_service.download_file(current_principal, file_id)

    return Response(
        content=content,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/{file_id}/metadata", response_model=FileMetadataResponse)
async def get_file_metadata(
    file_id: str,
    current_principal: str = Depends(get_current_principal),
    file_service: FileService = Depends(get_file_service)
):
    metadata = file_service.get_file_metadata(current_principal, file_id)
    return _metadata_response(metadata)


@router.delete("/{file_id}", response_model=DeleteFileResponse)
async def delete_file(
    file_id: str,
    current_principal: str = Depends(get_current_principal),
    file_service: FileService = Depends(get_file_service)
):
    """
    Delete a file. Allowed for Admins and for the file's owner.
    """
    file_service.delete_file(current_principal, file_id)
    return DeleteFileResponse(file_id=file_id, deleted=True)


@router.patch("/{file_id}/active", response_model=FileMetadataResponse)
async def set_file_active(
    file_id: str,
    request: SetActiveRequest,
    current_principal: str = Depends(get_current_principal),
    file_service: FileService = Depends(get_file_service)
):
    metadata = file_service.set_file_active(current_principal, file_id, request.active)
    return _metadata_response(metadata)


@router.get("/{file_id}/integrity", response_model=IntegrityResponse)
async def validate_file_integrity(
    file_id: str,
    current_principal: str = Depends(get_current_principal),
    file_service: FileService = Depends(get_file_service)
):
    """
    Re-check stored content against the chunk checksums recorded at upload.
    """
    valid = file_service.validate_file_integrity(current_principal, file_id)
    return IntegrityResponse(file_id=file_id, valid=valid)
