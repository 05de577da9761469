"""Core of the dynamic QR code manager."""

from .shortid import ShortIdGenerator
from .resolver import Resolver, RedirectTo, Downloadable
from .service import QRCodeService, RecordView

__all__ = [
    "ShortIdGenerator",
    "Resolver",
    "RedirectTo",
    "Downloadable",
    "QRCodeService",
    "RecordView",
]
