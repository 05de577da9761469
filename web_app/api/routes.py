"""Management API routes implementation."""

from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from dynqr.common.headers import build_base_url
from dynqr.encoder import PNG_CONTENT_TYPE

from .auth import require_api_key
from .schemas import (
    QRCodeRequest,
    RecordResponse,
    SuccessResponse,
    ClearAllResponse,
    ErrorResponse,
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    401: {"model": ErrorResponse, "description": "Missing or incorrect API key"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}

NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "QR code not found"}}

router = APIRouter(dependencies=[Depends(require_api_key)], responses=ERROR_RESPONSES)


def _base_url(request: Request) -> str:
    """Origin the QR codes should point at for this request."""
    config = request.app.state.config
    return build_base_url(
        headers=request.headers,
        configured_base_url=config.base_url,
        request_scheme=request.url.scheme,
        request_host=request.headers.get("host"),
    )


@router.get(
    "/qr",
    response_model=List[RecordResponse],
    summary="List QR codes",
    description="List every QR code with its resolvable URL and a freshly rendered preview.",
)
async def list_qr_codes(request: Request):
    """List QR codes."""
    service = request.app.state.service

    views = await service.list_records(_base_url(request))

    return [RecordResponse.from_view(view) for view in views]


@router.post(
    "/qr",
    response_model=RecordResponse,
    responses={409: {"model": ErrorResponse, "description": "No unique short id available"}},
    summary="Create QR code",
    description="Create a link or contact-card QR code.",
)
async def create_qr_code(request: Request, body: QRCodeRequest):
    """Create a QR code."""
    service = request.app.state.service

    record = await service.create(body.type, body.data)
    view = await service.view(record, _base_url(request))

    return RecordResponse.from_view(view)


@router.delete(
    "/qr/clear-all",
    response_model=ClearAllResponse,
    summary="Delete all QR codes",
)
async def clear_all_qr_codes(request: Request):
    """Delete every QR code."""
    service = request.app.state.service

    deleted = await service.clear_all()

    return ClearAllResponse(deleted=deleted)


@router.get(
    "/qr/{record_id}",
    response_model=RecordResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Get QR code",
)
async def get_qr_code(request: Request, record_id: int):
    """Get one QR code."""
    service = request.app.state.service

    view = await service.get(record_id, _base_url(request))

    return RecordResponse.from_view(view)


@router.put(
    "/qr/{record_id}",
    response_model=RecordResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Update QR code",
    description="Replace type and data of a QR code. The short id, and so the printed code, stays the same.",
)
async def update_qr_code(request: Request, record_id: int, body: QRCodeRequest):
    """Update a QR code."""
    service = request.app.state.service

    record = await service.update(record_id, body.type, body.data)
    view = await service.view(record, _base_url(request))

    return RecordResponse.from_view(view)


@router.delete(
    "/qr/{record_id}",
    response_model=SuccessResponse,
    responses=NOT_FOUND_RESPONSE,
    summary="Delete QR code",
)
async def delete_qr_code(request: Request, record_id: int):
    """Delete one QR code."""
    service = request.app.state.service

    await service.delete(record_id)

    return SuccessResponse()


@router.get(
    "/qr/{record_id}/image",
    responses={**NOT_FOUND_RESPONSE, 200: {"content": {PNG_CONTENT_TYPE: {}}}},
    response_class=Response,
    summary="Download QR image",
)
async def download_qr_image(request: Request, record_id: int):
    """Download the QR code as a PNG attachment."""
    service = request.app.state.service

    record, png = await service.image_for(record_id, _base_url(request))

    return Response(
        content=png,
        media_type=PNG_CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="qr-{record.short_id}.png"'},
    )
