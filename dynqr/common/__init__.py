"""Common utilities for the QR code manager."""

from .validators import validate_link, validate_contact, validate_payload
from .headers import extract_forwarded_headers, build_base_url
from .url_builder import build_resolution_url
from .logging_config import setup_logging, get_logger

__all__ = [
    "validate_link",
    "validate_contact",
    "validate_payload",
    "extract_forwarded_headers",
    "build_base_url",
    "build_resolution_url",
    "setup_logging",
    "get_logger",
]
