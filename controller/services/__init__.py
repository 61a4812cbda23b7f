"""Service layer for business logic."""

from controller.services.access_service import AccessService
from controller.services.file_service import FileService

__all__ = [
    "AccessService",
    "FileService",
]
