"""URL building utilities for QR resolution links."""

from typing import Optional

RESOLVE_PATH_PREFIX = "/q"


def build_resolution_url(
    short_id: str,
    base_url: str,
    custom_short_domain: Optional[str] = None,
    path_prefix: str = RESOLVE_PATH_PREFIX,
) -> str:
    """Build the URL a QR code encodes.

    Args:
        short_id: The record's short id
        base_url: Base URL (e.g., https://example.com)
        custom_short_domain: Optional short domain serving ids at its root
        path_prefix: Path prefix under base_url (default /q)

    Returns:
        Complete resolution URL
    """
    if custom_short_domain:
        return f"{custom_short_domain.rstrip('/')}/{short_id}"

    base = base_url.rstrip("/")
    prefix = path_prefix.strip("/")

    if prefix:
        return f"{base}/{prefix}/{short_id}"
    return f"{base}/{short_id}"
