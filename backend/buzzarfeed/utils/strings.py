"""String manipulation utilities."""

import re

from ..core.constants import StallCategory


def sanitize_string(value: str | None, max_length: int | None = None) -> str:
    """Sanitize string by trimming whitespace and optionally truncating.

    Examples:
        >>> sanitize_string("  hello world  ")
        "hello world"
        >>> sanitize_string("hello world", max_length=5)
        "hello"
    """
    if not value:
        return ""

    sanitized = value.strip()

    if max_length and len(sanitized) > max_length:
        return sanitized[:max_length]

    return sanitized


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user search text matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def normalize_category(value: str | None) -> str | None:
    """Map a category label or variant to its slug.

    Accepts slugs, display names and dashed/spaced variants, case-insensitively.
    Returns None for unknown categories.

    Examples:
        >>> normalize_category("Street Food")
        "street_food"
        >>> normalize_category("rice-meals")
        "rice_meals"
        >>> normalize_category("desserts")
        None
    """
    if not value:
        return None

    slug = re.sub(r"[\s\-]+", "_", value.strip().lower())
    if slug in StallCategory.ALL_CATEGORIES:
        return slug
    return None


def split_categories(value: str) -> list[str]:
    """Split a comma separated category string into normalized slugs.

    Raises:
        ValueError: If any entry is not a known category
    """
    categories = []
    for raw in value.split(","):
        if not raw.strip():
            continue
        slug = normalize_category(raw)
        if slug is None:
            raise ValueError(f"Invalid category: {raw.strip()}")
        if slug not in categories:
            categories.append(slug)
    return categories
