"""Client-facing error taxonomy and FastAPI exception handlers.

Learn: Components (token codec, token store, services) raise their own
typed exceptions. Routes and auth dependencies translate those into the
five client-facing kinds below. Messages shown to clients stay generic
("Unauthorized", "Snippet not found") so they never confirm whether an
account or resource exists; detail goes to the logs instead.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from snapcode.config import settings

logger = structlog.get_logger()


class AppError(Exception):
    """Base for errors that map directly onto an HTTP response."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(AppError):
    status_code = 400
    default_message = "Bad request"


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class ServiceUnavailableError(AppError):
    """A downstream dependency timed out or is down."""

    status_code = 503
    default_message = "Service temporarily unavailable"


class InternalError(AppError):
    status_code = 500


def register_error_handlers(app: FastAPI) -> None:
    """Install the AppError and catch-all handlers on the app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        headers = None
        if exc.status_code == 401:
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message},
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(
            "snapcode.unhandled_error",
            path=request.url.path,
            error_type=type(exc).__name__,
        )
        content = {"detail": InternalError.default_message}
        if settings.is_development:
            content["message"] = str(exc)
        return JSONResponse(status_code=500, content=content)
