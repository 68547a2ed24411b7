"""ID, token and key generation utilities."""

import secrets
import uuid

from ..core.constants import PasswordPolicy


def generate_request_id(prefix: str | None = None) -> str:
    """Generate a unique request ID.

    Args:
        prefix: Optional prefix for the request ID (e.g., "worker-", "email-")

    Returns:
        Request ID string (UUID)

    Examples:
        >>> generate_request_id()
        "a1b2c3d4-e5f6-7890-abcd-ef1234567890"
        >>> generate_request_id("email-")
        "email-a1b2c3d4-e5f6-7890-abcd-ef1234567890"
    """
    request_id = str(uuid.uuid4())
    if prefix:
        return f"{prefix}{request_id}"
    return request_id


def generate_reset_token() -> str:
    """Generate a password reset token (64 hex characters)."""
    return secrets.token_hex(PasswordPolicy.RESET_TOKEN_BYTES)


def generate_file_name(prefix: str, extension: str) -> str:
    """Random stored name for an upload, e.g. ``permit_9f86d081884c7d65.pdf``."""
    return f"{prefix}_{secrets.token_hex(8)}{extension}"


def generate_cache_key(
    prefix: str,
    *args,
    separator: str = ":",
    **kwargs
) -> str:
    """Generate a cache key from prefix and arguments.

    Args:
        prefix: Key prefix (e.g., "stall", "stalls")
        *args: Positional arguments to include in key
        separator: Separator between key parts (default: ":")
        **kwargs: Keyword arguments to include in key (sorted by key name)

    Returns:
        Cache key string

    Examples:
        >>> generate_cache_key("stall", 12)
        "stall:12"
        >>> generate_cache_key("stalls", category="snacks", page=1)
        "stalls:category=snacks:page=1"
    """
    parts = [prefix]

    for arg in args:
        if arg is not None:
            parts.append(str(arg))

    if kwargs:
        for key, value in sorted(kwargs.items()):
            if value is not None:
                parts.append(f"{key}={value}")

    return separator.join(parts)
