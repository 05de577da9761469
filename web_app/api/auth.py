"""Shared-secret authentication for the management API."""

import secrets

from fastapi import Request, Security
from fastapi.security import APIKeyHeader

from dynqr.common.logging_config import get_logger
from dynqr.errors import UnauthorizedError

API_KEY_HEADER = "X-API-Key"

api_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)

logger = get_logger("web.auth")


async def require_api_key(request: Request, api_key: str = Security(api_key_header)) -> None:
    """Reject requests without the configured management key.

    With no key configured the API stays closed unless the deprecated
    ``allow_unauthenticated`` demo mode is switched on.
    """
    config = request.app.state.config

    if config.allow_unauthenticated:
        return

    expected = config.api_key
    if not expected or not api_key or not secrets.compare_digest(api_key.encode(), expected.encode()):
        client_ip = request.client.host if request.client else "unknown"
        logger.warning(f"Rejected management request {request.method} {request.url.path} from {client_ip}")
        raise UnauthorizedError()
