"""Public resolution routes implementation."""

from fastapi import APIRouter, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from dynqr.common.logging_config import get_logger
from dynqr.errors import QRManagerError
from dynqr.resolver import Downloadable, RedirectTo

router = APIRouter()

logger = get_logger("web.resolve")

# Static on purpose: nothing from the request is echoed back.
NOT_FOUND_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>QR code not found</title>
</head>
<body>
    <h1>QR code not found</h1>
    <p>This QR code does not exist or is no longer active.</p>
</body>
</html>
"""


def _not_found() -> HTMLResponse:
    return HTMLResponse(content=NOT_FOUND_HTML, status_code=status.HTTP_404_NOT_FOUND)


def _attachment(download: Downloadable) -> Response:
    return Response(
        content=download.content,
        media_type=download.content_type,
        headers={"Content-Disposition": f'attachment; filename="{download.filename}"'},
    )


async def _resolve(request: Request, short_id: str) -> Response:
    """Resolve a short id; every failure looks the same to the scanner."""
    resolver = request.app.state.service.resolver

    try:
        resolution = await resolver.resolve(short_id)
    except QRManagerError:
        return _not_found()
    except Exception as e:
        logger.error(f"Unexpected error resolving short id: {e}", exc_info=True)
        return _not_found()

    if isinstance(resolution, RedirectTo):
        # 302 so a later update of the destination takes effect on the next scan
        return RedirectResponse(url=resolution.url, status_code=status.HTTP_302_FOUND)
    return _attachment(resolution)


@router.get("/q/{short_id}", include_in_schema=False)
async def resolve_short_id(request: Request, short_id: str):
    """Resolve a scanned QR code."""
    return await _resolve(request, short_id)


@router.get("/download/{short_id}", include_in_schema=False)
async def download_contact_card(request: Request, short_id: str):
    """Download the contact card behind a vCard QR code."""
    resolver = request.app.state.service.resolver

    try:
        download = await resolver.download(short_id)
    except QRManagerError:
        return _not_found()
    except Exception as e:
        logger.error(f"Unexpected error downloading contact card: {e}", exc_info=True)
        return _not_found()

    return _attachment(download)


@router.get("/{short_id}", include_in_schema=False)
async def resolve_short_id_at_root(request: Request, short_id: str):
    """Resolve ids served at the root of a custom short domain."""
    return await _resolve(request, short_id)
