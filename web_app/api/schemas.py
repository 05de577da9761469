"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from dynqr.service import RecordView


class QRCodeRequest(BaseModel):
    """Create or update a QR code.

    ``data`` is validated by the service according to ``type``; unknown keys
    are dropped there.
    """

    type: str = Field(..., description="'link' or 'vcard'")
    data: Dict[str, Any] = Field(..., description="Kind-specific payload")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "type": "link",
                    "data": {"url": "https://example.com/menu"}
                },
                {
                    "type": "vcard",
                    "data": {
                        "firstName": "Jane",
                        "lastName": "Doe",
                        "email": "jane@example.com",
                        "phone": "+1 555 123 4567",
                    }
                }
            ]
        }
    }


class RecordResponse(BaseModel):
    """A QR code record with its resolvable URL and PNG preview."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    short_id: str = Field(..., description="8-character public token")
    type: str
    data: Dict[str, Any]
    created_at: datetime
    updated_at: datetime
    qr_url: str = Field(..., description="URL encoded in the QR code")
    qr_image: str = Field(..., description="PNG preview as a data URL")

    @classmethod
    def from_view(cls, view: RecordView) -> "RecordResponse":
        record = view.record
        return cls(
            id=record.id,
            short_id=record.short_id,
            type=record.kind.value,
            data=record.payload.to_dict(),
            created_at=record.created_at,
            updated_at=record.updated_at,
            qr_url=view.qr_url,
            qr_image=view.qr_image,
        )


class SuccessResponse(BaseModel):
    """Success marker."""

    success: bool = True


class ClearAllResponse(SuccessResponse):
    """Result of deleting every record."""

    deleted: int = Field(..., description="Number of records deleted")


class ErrorResponse(BaseModel):
    """Error response."""

    success: bool = False
    error: str = Field(..., description="Error message")
