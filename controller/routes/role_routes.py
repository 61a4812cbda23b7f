"""Role management API routes."""

from fastapi import APIRouter, Depends, status

from common.exceptions import UnauthorizedError
from controller.auth import get_access_service, get_current_principal
from controller.config import BOOTSTRAP_ADMIN
from controller.schemas.roles import PrincipalsResponse, RoleChangeRequest, RolesResponse
from controller.services.access_service import AccessService

router = APIRouter(prefix="/roles", tags=["Roles"])


def _roles_response(identity, roles) -> RolesResponse:
    return RolesResponse(identity=identity, roles=sorted(role.value for role in roles))


@router.get("", response_model=PrincipalsResponse)
async def list_principals(
    current_principal: str = Depends(get_current_principal),
    access_service: AccessService = Depends(get_access_service)
):
    """
    List every principal holding a role. Admin only.
    """
    principals = access_service.list_principals(current_principal)
    return PrincipalsResponse(
        principals={
            identity: sorted(role.value for role in roles)
            for identity, roles in principals.items()
        }
    )


@router.get("/me", response_model=RolesResponse)
async def my_roles(
    current_principal: str = Depends(get_current_principal),
    access_service: AccessService = Depends(get_access_service)
):
    return _roles_response(current_principal, access_service.roles_of(current_principal))


@router.post("/bootstrap", response_model=RolesResponse, status_code=status.HTTP_201_CREATED)
async def bootstrap_admin(
    current_principal: str = Depends(get_current_principal),
    access_service: AccessService = Depends(get_access_service)
):
    """
    Make the caller the first Admin.

    On a store with no Admin, any caller may claim the role unless
    CDN_BOOTSTRAP_ADMIN is set, in which case only that principal may.

    Raises:
        - 403: CDN_BOOTSTRAP_ADMIN is set to a different principal
        - 409: An Admin already exists
    """
    if BOOTSTRAP_ADMIN and current_principal != BOOTSTRAP_ADMIN:
        raise UnauthorizedError(f"Only {BOOTSTRAP_ADMIN} may bootstrap the first Admin")
    roles = access_service.initialize_admin(current_principal)
    return _roles_response(current_principal, roles)


@router.post("/grant", response_model=RolesResponse)
async def grant_role(
    request: RoleChangeRequest,
    current_principal: str = Depends(get_current_principal),
    access_service: AccessService = Depends(get_access_service)
):
    """
    Grant a role to a principal. Admin only.

    Raises:
        - 400: Unknown role name
        - 403: Caller is not an Admin
        - 409: Target already holds the role
    """
    roles = access_service.grant_role(current_principal, request.target, request.role)
    return _roles_response(request.target, roles)


@router.post("/revoke", response_model=RolesResponse)
async def revoke_role(
    request: RoleChangeRequest,
    current_principal: str = Depends(get_current_principal),
    access_service: AccessService = Depends(get_access_service)
):
    """
    Revoke a role from a principal. Admin only.

    Raises:
        - 403: Caller is not an Admin
        - 409: Target does not hold the role, or it is the last Admin
    """
    roles = access_service.revoke_role(current_principal, request.target, request.role)
    return _roles_response(request.target, roles)


@router.get("/{identity}", response_model=RolesResponse)
async def roles_of(
    identity: str,
    current_principal: str = Depends(get_current_principal),
    access_service: AccessService = Depends(get_access_service)
):
    return _roles_response(identity, access_service.roles_of(identity))
