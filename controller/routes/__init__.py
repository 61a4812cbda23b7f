"""API routes package."""

from controller.routes.config_routes import router as config_router
from controller.routes.file_routes import router as file_router
from controller.routes.role_routes import router as role_router

__all__ = ["config_router", "file_router", "role_router"]
