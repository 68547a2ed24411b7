"""Utility functions organized by domain.

Prefer importing from specific modules for clarity:
    from buzzarfeed.utils.strings import normalize_category
    from buzzarfeed.utils.generators import generate_request_id
"""

# Converters
from .converters import normalize_path, round_half_up, safe_json_dumps, safe_json_loads, to_float

# Generators
from .generators import (
    generate_cache_key,
    generate_file_name,
    generate_request_id,
    generate_reset_token,
)

# Strings
from .strings import escape_like, normalize_category, sanitize_string, split_categories

__all__ = [
    # Converters
    "normalize_path",
    "round_half_up",
    "safe_json_dumps",
    "safe_json_loads",
    "to_float",
    # Generators
    "generate_cache_key",
    "generate_file_name",
    "generate_request_id",
    "generate_reset_token",
    # Strings
    "escape_like",
    "normalize_category",
    "sanitize_string",
    "split_categories",
]
