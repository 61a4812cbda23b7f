"""Entry point for the file store controller service."""

import time
import uuid
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.constants import PRINCIPAL_HEADER
from common.exceptions import (
    AlreadyInitializedError,
    CDNException,
    DuplicateFileError,
    InternalFailureError,
    LastAdminViolationError,
    NotFoundError,
    RoleAlreadyAssignedError,
    RoleNotPresentError,
    StorageUnavailableError,
    UnauthorizedError,
    UploadsDisabledError,
    ValidationError
)
from common.logging_config import setup_service_logging
from controller.config import (
    BOOTSTRAP_ADMIN,
    CHUNK_SIZE,
    CONTROLLER_HOST,
    CONTROLLER_PORT,
    STATE_PATH
)
from controller.persistence import load_state, save_state
from controller.routes import config_router, file_router, role_router
from controller.schemas.common import ErrorResponse
from controller.store import Store

logger = setup_service_logging()

# (status code, log with traceback)
ERROR_STATUS = {
    UnauthorizedError: (status.HTTP_403_FORBIDDEN, False),
    ValidationError: (status.HTTP_400_BAD_REQUEST, False),
    UploadsDisabledError: (status.HTTP_503_SERVICE_UNAVAILABLE, False),
    NotFoundError: (status.HTTP_404_NOT_FOUND, False),
    LastAdminViolationError: (status.HTTP_409_CONFLICT, False),
    RoleAlreadyAssignedError: (status.HTTP_409_CONFLICT, False),
    RoleNotPresentError: (status.HTTP_409_CONFLICT, False),
    AlreadyInitializedError: (status.HTTP_409_CONFLICT, False),
    StorageUnavailableError: (status.HTTP_503_SERVICE_UNAVAILABLE, True),
    DuplicateFileError: (status.HTTP_500_INTERNAL_SERVER_ERROR, True),
    InternalFailureError: (status.HTTP_500_INTERNAL_SERVER_ERROR, True),
    CDNException: (status.HTTP_500_INTERNAL_SERVER_ERROR, True),
}


async def cdn_exception_handler(request: Request, exc: CDNException):
    """
    Translate a file store error into a JSON body with its error code.
    """
    status_code, with_traceback = _status_for(exc)
    request_id = getattr(request.state, 'request_id', 'unknown')
    message = (
        f"{type(exc).__name__}: {exc} [request_id={request_id}] path={request.url.path}"
    )
    if with_traceback:
        logger.error(message, exc_info=True)
    else:
        logger.warning(message)

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=str(exc), code=exc.code).model_dump()
    )


def _status_for(exc: CDNException):
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return ERROR_STATUS[CDNException]


def create_app(store: Optional[Store] = None, state_path: Optional[str] = STATE_PATH) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        store: Store to serve; loaded from `state_path` at startup when None
        state_path: JSON state file, or None to keep state in memory only
    """
    app = FastAPI(
        title="CDN File Store Controller",
        description="Role-gated content-addressed file store",
        version="1.0.0"
    )
    app.state.store = store
    app.state.state_path = state_path

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Middleware to log all HTTP requests and responses.
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        principal = request.headers.get(PRINCIPAL_HEADER)

        logger.info(
            f"Request started: {request.method} {request.url.path} "
            f"[request_id={request_id}] [principal={principal or 'anonymous'}]"
        )

        response = await call_next(request)

        duration = time.time() - start_time

        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
        )

        response.headers["X-Request-ID"] = request_id

        return response

    @app.on_event("startup")
    async def startup_event():
        """
        Load persisted state and bootstrap the configured Admin.
        """
        logger.info("Controller service starting up...")

        if app.state.store is None:
            if app.state.state_path:
                app.state.store = load_state(app.state.state_path, chunk_size=CHUNK_SIZE)
            else:
                app.state.store = Store(chunk_size=CHUNK_SIZE)

        store = app.state.store
        if BOOTSTRAP_ADMIN and not store.roles.has_admin():
            store.roles.init_admin(BOOTSTRAP_ADMIN)
            logger.info(f"Bootstrapped admin {BOOTSTRAP_ADMIN}")

        logger.info(
            f"Controller ready: {store.files.count()} files, "
            f"{store.contents.count()} content records"
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        """
        Persist state on application shutdown.
        """
        logger.info("Controller service shutting down...")

        if app.state.store is not None and app.state.state_path:
            save_state(app.state.store, app.state.state_path)

    for exc_class in ERROR_STATUS:
        app.add_exception_handler(exc_class, cdn_exception_handler)

    app.include_router(file_router)
    app.include_router(role_router)
    app.include_router(config_router)

    @app.get("/")
    async def root():
        """
        Root endpoint for health check.
        """
        return {"message": "CDN File Store Controller API", "status": "running"}

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint for Docker healthcheck.
        """
        store = app.state.store
        return {
            "status": "healthy",
            "service": "controller",
            "files": store.files.count() if store is not None else 0
        }

    return app


app = create_app()


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "controller.main:app",
        host=CONTROLLER_HOST,
        port=CONTROLLER_PORT
    )


if __name__ == "__main__":
    main()
