"""Middleware for the QR code manager web app."""

from .logging import LoggingMiddleware
from .security import SecurityHeadersMiddleware

__all__ = ["LoggingMiddleware", "SecurityHeadersMiddleware"]
