"""Runtime configuration API routes."""

from fastapi import APIRouter, Depends

from controller.auth import get_access_service, get_current_principal
from controller.config import ConfigUpdate, RuntimeConfig
from controller.schemas.config import ConfigResponse
from controller.services.access_service import AccessService

router = APIRouter(prefix="/config", tags=["Config"])


def _config_response(config: RuntimeConfig) -> ConfigResponse:
    return ConfigResponse(
        max_file_size_bytes=config.max_file_size_bytes,
        uploads_enabled=config.uploads_enabled,
        domain=config.domain,
        last_updated_at=config.last_updated_at.isoformat()
    )


@router.get("", response_model=ConfigResponse)
async def get_config(
    current_principal: str = Depends(get_current_principal),
    access_service: AccessService = Depends(get_access_service)
):
    return _config_response(access_service.get_config())


@router.patch("", response_model=ConfigResponse)
async def update_config(
    update: ConfigUpdate,
    current_principal: str = Depends(get_current_principal),
    access_service: AccessService = Depends(get_access_service)
):
    """
    Partially update the runtime configuration. Admin only.

    Omitted fields keep their value; "domain": null clears the domain.

    Raises:
        - 400: max_file_size_bytes out of range or malformed domain
        - 403: Caller is not an Admin
    """
    return _config_response(access_service.update_config(current_principal, update))


@router.post("/reset", response_model=ConfigResponse)
async def reset_config(
    current_principal: str = Depends(get_current_principal),
    access_service: AccessService = Depends(get_access_service)
):
    return _config_response(access_service.reset_config(current_principal))
