"""
Error classes for consistent error handling.

Every error the core reports to callers derives from QRManagerError and carries
the HTTP status the web layer answers with.
"""

from typing import Optional, Dict, Any


class QRManagerError(Exception):
    """
    Base error class.

    Attributes:
        status_code: HTTP status code (default: 500)
        message: Error message (default: "Internal server error")
        details: Optional additional error details
    """
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """
        Initialize error.

        Args:
            message: Error message (overrides default)
            details: Optional additional error details
        """
        self.message = message or self.message
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputError(QRManagerError):
    """400 Validation failure."""
    status_code = 400
    message = "Invalid input"


class UnauthorizedError(QRManagerError):
    """401 Missing or incorrect management credential."""
    status_code = 401
    message = "Unauthorized"


class NotFoundError(QRManagerError):
    """404 No record for the given id or short id."""
    status_code = 404
    message = "QR code not found"


class ConflictError(QRManagerError):
    """409 Identifier collision retries exhausted or store race."""
    status_code = 409
    message = "Conflict"


class InternalError(QRManagerError):
    """500 Store or encoder failure."""
    status_code = 500
    message = "Internal server error"


class StoreError(Exception):
    """Raised by record stores when the backend fails."""


class DuplicateShortIdError(StoreError):
    """Raised by record stores when a short id has already been issued."""

    def __init__(self, short_id: str):
        self.short_id = short_id
        super().__init__(f"Short id already issued: {short_id}")
