"""Validation and sanitization of untrusted record input.

Links must be absolute http(s) URLs. Contact fields are trimmed, HTML-escaped
and length-capped; the sanitized values are what gets persisted, so every
consumer downstream can embed them without escaping again.
"""

import html
import ipaddress
import re
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

from ..database.models import ContactCardPayload, LinkPayload, RecordKind, Payload
from ..errors import InvalidInputError

MAX_URL_LENGTH = 2048
MAX_FIELD_LENGTH = 100

ALLOWED_SCHEMES = ("http", "https")

# Checked before parsing, on the lower-cased URL with whitespace and control
# characters removed, so "java\tscript:" is caught as well.
BLOCKED_SCHEME_PREFIXES = (
    "javascript:",
    "data:",
    "vbscript:",
    "file:",
    "ftp:",
    "mailto:",
    "tel:",
    "sms:",
    "about:",
    "chrome:",
    "chrome-extension:",
    "moz-extension:",
    "edge:",
    "view-source:",
    "blob:",
    "ws:",
    "wss:",
    "ldap:",
    "ldaps:",
    "dict:",
    "gopher:",
)

SPOOFING_MARKERS = ("..", "@", "#")

LOCAL_HOSTNAMES = {"localhost", "localhost.localdomain", "ip6-localhost", "ip6-loopback"}

EMAIL_RE = re.compile(r"^[^\s@<>\"']+@[^\s@<>\"']+\.[^\s@<>\"']+$")
PHONE_RE = re.compile(r"^\+?[0-9\s().-]{7,25}$")

_INVISIBLE_RE = re.compile(r"[\x00-\x20\x7f]")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")


def _is_private_host(hostname: str) -> bool:
    """True for loopback, private, link-local and other non-public addresses."""
    host = hostname.lower().rstrip(".")
    if host in LOCAL_HOSTNAMES or host.endswith(".localhost"):
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return (
        address.is_loopback
        or address.is_private
        or address.is_link_local
        or address.is_reserved
        or address.is_unspecified
        or address.is_multicast
    )


def validate_link(url: Any, production: bool = False) -> str:
    """Validate a redirect destination.

    Args:
        url: The URL to validate
        production: Also reject loopback and private-network hosts

    Returns:
        The trimmed URL, otherwise unchanged

    Raises:
        InvalidInputError: If the URL is not an acceptable http(s) destination
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidInputError("URL is required")

    url = url.strip()

    if len(url) > MAX_URL_LENGTH:
        raise InvalidInputError(f"URL is too long (max {MAX_URL_LENGTH} characters)")

    compact = _INVISIBLE_RE.sub("", url).lower()
    if compact.startswith(BLOCKED_SCHEME_PREFIXES):
        raise InvalidInputError("URL scheme is not allowed")

    if _INVISIBLE_RE.search(url):
        raise InvalidInputError("URL must not contain whitespace or control characters")

    try:
        parsed = urlparse(url)
        # Accessing .port raises ValueError on a malformed port
        parsed.port
    except ValueError:
        raise InvalidInputError("Invalid URL format")

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise InvalidInputError("URL must use http or https protocol")

    if not parsed.netloc or not parsed.hostname:
        raise InvalidInputError("URL must have a valid domain")

    # Raw text after "//" up to the path or query; urlparse would already have
    # dropped userinfo and fragment from it.
    before_path = re.split(r"[/?]", url.split("//", 1)[1], maxsplit=1)[0]
    authority = before_path.split("#", 1)[0]
    if any(marker in authority for marker in SPOOFING_MARKERS) or "@" in before_path:
        raise InvalidInputError("URL host contains suspicious characters")

    if production and _is_private_host(parsed.hostname):
        raise InvalidInputError("URL must not point to a local or private network address")

    return url


def _sanitize_field(name: str, value: str) -> str:
    """Escape markup and enforce the length cap on one contact field."""
    if _CONTROL_RE.search(value):
        raise InvalidInputError(f"{name} must not contain control characters")
    escaped = html.escape(value, quote=True)
    if len(escaped) > MAX_FIELD_LENGTH:
        raise InvalidInputError(f"{name} must be at most {MAX_FIELD_LENGTH} characters")
    return escaped


def _optional_string(fields: Mapping[str, Any], name: str) -> Optional[str]:
    """Return a trimmed optional field, or None when absent or blank."""
    value = fields.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInputError(f"{name} must be a string")
    value = value.strip()
    return value or None


def validate_contact(fields: Any, production: bool = False) -> ContactCardPayload:
    """Validate and sanitize contact card fields.

    Unrecognized keys are dropped.

    Args:
        fields: Raw contact fields (camelCase keys)
        production: Passed through to website validation

    Returns:
        A new, sanitized ContactCardPayload

    Raises:
        InvalidInputError: If a field violates the policy
    """
    if not isinstance(fields, Mapping):
        raise InvalidInputError("Contact data must be an object")

    sanitized = {}

    for attr, key in (("first_name", "firstName"), ("last_name", "lastName")):
        value = fields.get(key)
        if not isinstance(value, str) or not value.strip():
            raise InvalidInputError(f"{key} is required")
        sanitized[attr] = _sanitize_field(key, value.strip())

    email = _optional_string(fields, "email")
    if email is not None:
        if not EMAIL_RE.match(email):
            raise InvalidInputError("email is not a valid email address")
        sanitized["email"] = _sanitize_field("email", email)

    phone = _optional_string(fields, "phone")
    if phone is not None:
        if not PHONE_RE.match(phone) or sum(c.isdigit() for c in phone) < 5:
            raise InvalidInputError("phone is not a valid phone number")
        sanitized["phone"] = _sanitize_field("phone", phone)

    for key in ("organization", "title"):
        value = _optional_string(fields, key)
        if value is not None:
            sanitized[key] = _sanitize_field(key, value)

    website = _optional_string(fields, "website")
    if website is not None:
        try:
            website = validate_link(website, production=production)
        except InvalidInputError as e:
            raise InvalidInputError(f"website: {e.message}")
        sanitized["website"] = _sanitize_field("website", website)

    return ContactCardPayload(**sanitized)


def parse_kind(value: Any) -> RecordKind:
    """Map the wire type string onto a RecordKind."""
    try:
        return RecordKind(value)
    except ValueError:
        raise InvalidInputError("type must be 'link' or 'vcard'")


def validate_payload(kind: Any, data: Any, production: bool = False) -> Payload:
    """Validate a whole payload for the declared kind.

    Args:
        kind: RecordKind or its wire string
        data: Raw payload object
        production: Reject private-network link targets

    Returns:
        LinkPayload or ContactCardPayload matching ``kind``
    """
    kind = parse_kind(kind)
    if kind is RecordKind.LINK:
        if not isinstance(data, Mapping):
            raise InvalidInputError("Link data must be an object")
        return LinkPayload(url=validate_link(data.get("url"), production=production))
    return validate_contact(data, production=production)
