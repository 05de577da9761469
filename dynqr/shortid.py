"""Short id generation utilities."""

import secrets
import string
from typing import Optional


class ShortIdGenerator:
    """Generate short, URL-safe ids for QR records."""

    # URL-safe alphabet (a-zA-Z0-9_-), 64 symbols -> 6 bits per character
    URL_SAFE_CHARS = string.ascii_letters + string.digits + "_-"

    DEFAULT_LENGTH = 8

    def __init__(self, default_length: int = DEFAULT_LENGTH):
        """Initialize short id generator.

        Args:
            default_length: Default length for generated ids
        """
        self.default_length = default_length

    def generate(self, length: Optional[int] = None) -> str:
        """Generate a random short id.

        Uses the ``secrets`` CSPRNG; 8 characters give 48 bits of entropy.

        Args:
            length: Length of the id (uses default if not specified)

        Returns:
            Random short id
        """
        length = length or self.default_length
        return "".join(secrets.choice(self.URL_SAFE_CHARS) for _ in range(length))

    @classmethod
    def is_valid_format(cls, short_id: str, length: int = DEFAULT_LENGTH) -> bool:
        """Check if a short id has the generated shape.

        Args:
            short_id: Id to validate
            length: Expected length

        Returns:
            True if valid format
        """
        if not isinstance(short_id, str) or len(short_id) != length:
            return False
        return all(c in cls.URL_SAFE_CHARS for c in short_id)
