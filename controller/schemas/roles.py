"""Pydantic schemas for role management endpoints."""

from typing import Dict, List
from pydantic import BaseModel


class RoleChangeRequest(BaseModel):
    """Request model for granting or revoking a role."""
    target: str
    role: str


class RolesResponse(BaseModel):
    identity: str
    roles: List[str]


class PrincipalsResponse(BaseModel):
    """Every principal holding at least one role."""
    principals: Dict[str, List[str]]
