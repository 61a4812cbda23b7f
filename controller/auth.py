"""Caller identity and service dependencies for the HTTP layer."""

from fastapi import Header, HTTPException, Request, status

from common.constants import PRINCIPAL_HEADER
from controller.services.access_service import AccessService
from controller.services.file_service import FileService
from controller.store import Store


async def get_current_principal(
    principal_id: str = Header(None, alias=PRINCIPAL_HEADER)
) -> str:
    """
    FastAPI dependency extracting the caller identity.

    Identity is established upstream (gateway or reverse proxy) and passed in
    the X-Principal-Id header; this service only authorizes it.

    Returns:
        Principal identity of the caller

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    if principal_id is None or not principal_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {PRINCIPAL_HEADER} header"
        )
    principal_id = principal_id.strip()
    return principal_id


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_file_service(request: Request) -> FileService:
    return FileService(get_store(request))


def get_access_service(request: Request) -> AccessService:
    return AccessService(get_store(request))
