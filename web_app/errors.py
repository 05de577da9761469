"""
Exception handlers for consistent error responses.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from dynqr.common.logging_config import get_logger
from dynqr.errors import QRManagerError

from .middleware.security import SECURITY_HEADERS

logger = get_logger("web.errors")


async def handle_qr_manager_error(request: Request, exc: QRManagerError) -> JSONResponse:
    """Render a core error with its status code."""
    if exc.status_code >= 500:
        logger.error(f"Error in {request.url.path}: {exc.message}")
    else:
        logger.warning(f"Client error in {request.url.path}: {exc.message}")
    return JSONResponse({"success": False, "error": exc.message}, status_code=exc.status_code)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and path parameters are invalid input.

    Only field locations and messages are returned, never the submitted values.
    """
    problems = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    ]
    logger.warning(f"Invalid request to {request.url.path}: {problems}")
    return JSONResponse(
        {"success": False, "error": "Invalid request", "details": problems},
        status_code=400,
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Anything else is an internal error without detail."""
    logger.error(f"Unhandled error in {request.url.path}: {exc}", exc_info=exc)
    # Served from outside the middleware stack, so headers are set here
    return JSONResponse(
        {"success": False, "error": "Internal server error"},
        status_code=500,
        headers=dict(SECURITY_HEADERS),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(QRManagerError, handle_qr_manager_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
