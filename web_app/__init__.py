"""FastAPI web layer for the QR code manager."""

from .app_factory import create_app

__all__ = ["create_app"]
