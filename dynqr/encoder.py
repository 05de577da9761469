"""Render records as QR images and contact-card files."""

import base64
import io
from functools import lru_cache

import qrcode

from .database.models import ContactCardPayload

# Fixed rendering parameters; output depends on the encoded URL only.
QR_BOX_SIZE = 10
QR_BORDER = 2
QR_FILL_COLOR = "black"
QR_BACK_COLOR = "white"

VCARD_CONTENT_TYPE = "text/vcard; charset=utf-8"
PNG_CONTENT_TYPE = "image/png"


@lru_cache(maxsize=512)
def render_qr_png(data: str) -> bytes:
    """Render ``data`` as a PNG QR code.

    Deterministic: the same input always yields byte-identical output, which
    is what makes the cache safe.
    """
    qr = qrcode.QRCode(
        version=None,  # smallest version that fits
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=QR_BOX_SIZE,
        border=QR_BORDER,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color=QR_FILL_COLOR, back_color=QR_BACK_COLOR)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def to_data_url(png: bytes) -> str:
    """Wrap PNG bytes in a data URL for JSON previews."""
    return f"data:{PNG_CONTENT_TYPE};base64," + base64.b64encode(png).decode("ascii")


def render_vcard(card: ContactCardPayload) -> str:
    """Render a contact card as vCard 3.0 text with CRLF line endings.

    Values are stored sanitized (escaped, no control characters) and are
    written as-is. Absent optional fields produce no line.
    """
    lines = [
        "BEGIN:VCARD",
        "VERSION:3.0",
        f"FN:{card.first_name} {card.last_name}",
        f"N:{card.last_name};{card.first_name};;;",
    ]

    optional = (
        ("EMAIL", card.email),
        ("TEL", card.phone),
        ("ORG", card.organization),
        ("TITLE", card.title),
        ("URL", card.website),
    )
    for name, value in optional:
        if value:
            lines.append(f"{name}:{value}")

    lines.append("END:VCARD")
    return "\r\n".join(lines)


def render_vcard_bytes(card: ContactCardPayload) -> bytes:
    return render_vcard(card).encode("utf-8")
