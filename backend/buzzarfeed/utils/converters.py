"""Type conversion utilities."""

import json
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime | date):
        return value.isoformat()
    return str(value)


def safe_json_loads(json_string: str, default: Any = None) -> Any:
    """Safely parse JSON string, returning default on error.

    Args:
        json_string: JSON string to parse
        default: Default value to return on error

    Returns:
        Parsed JSON object or default value
    """
    try:
        return json.loads(json_string)
    except (json.JSONDecodeError, TypeError):
        return default


def safe_json_dumps(obj: Any, default: str = "{}") -> str:
    """Safely serialize object to JSON string.

    Decimals become floats and datetimes ISO strings, matching the API output.

    Args:
        obj: Object to serialize
        default: Default string to return on error

    Returns:
        JSON string or default value
    """
    try:
        return json.dumps(obj, default=_json_default)
    except (TypeError, ValueError):
        return default


def to_float(value: Any, default: float = 0.0) -> float:
    """Convert a numeric column value (Decimal, int, None) to float."""
    if value is None:
        return default
    return float(value)


def round_half_up(value: Any, places: int) -> float:
    """Round halves away from zero: 4.125 -> 4.13, where round() gives 4.12."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def normalize_path(path: str) -> str:
    """Normalize API path by replacing numeric IDs with placeholders.

    Useful for metrics and logging to avoid high cardinality.

    Examples:
        >>> normalize_path("/api/v1/stalls/42")
        "/api/v1/stalls/{id}"
        >>> normalize_path("/api/v1/stalls/42/menu/7")
        "/api/v1/stalls/{id}/menu/{id}"
    """
    if not path:
        return path

    return re.sub(r'/\d+(?=/|$)', '/{id}', path)
