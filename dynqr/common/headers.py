"""Header parsing utilities for building public URLs."""

from typing import Dict, Mapping, Optional


def extract_forwarded_headers(headers: Mapping[str, str]) -> Dict[str, Optional[str]]:
    """Extract X-Forwarded-* headers from request.

    Args:
        headers: Request headers mapping

    Returns:
        Dictionary with forwarded_proto, forwarded_host, forwarded_for
    """
    # Convert headers to lowercase for case-insensitive lookup
    headers_lower = {k.lower(): v for k, v in headers.items()}

    return {
        "forwarded_proto": headers_lower.get("x-forwarded-proto"),
        "forwarded_host": headers_lower.get("x-forwarded-host"),
        "forwarded_for": headers_lower.get("x-forwarded-for"),
    }


def build_base_url(
    headers: Mapping[str, str],
    configured_base_url: Optional[str] = None,
    request_scheme: Optional[str] = None,
    request_host: Optional[str] = None,
    fallback_base_url: str = "http://localhost:3000",
) -> str:
    """Build the public origin used in resolution URLs.

    Priority:
    1. Configured base URL (BASE_URL)
    2. X-Forwarded-Proto (or request scheme) + X-Forwarded-Host (or Host)
    3. Fallback base URL

    Args:
        headers: Request headers
        configured_base_url: Base URL from configuration
        request_scheme: Request scheme (http/https)
        request_host: Request host
        fallback_base_url: Used when nothing else is known

    Returns:
        Base URL without trailing slash (e.g., https://example.com)
    """
    if configured_base_url:
        return configured_base_url.rstrip("/")

    forwarded = extract_forwarded_headers(headers)

    # Proxies may send a comma-separated chain; the first entry is the client-facing one
    proto = (forwarded["forwarded_proto"] or request_scheme or "").split(",")[0].strip()
    host = (forwarded["forwarded_host"] or request_host or "").split(",")[0].strip()

    if proto and host:
        return f"{proto}://{host}"

    return fallback_base_url.rstrip("/")
