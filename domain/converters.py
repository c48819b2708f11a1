"""
Type Conversion Utilities for Domain Model Factories

Safe conversion functions for building domain models from pandas rows,
plain dicts and JSON decoded from session storage. Null values (None, NaN,
pd.NA) never raise; they fall back to the given default.

Usage:
    ```python
    from domain.converters import safe_str, safe_int, safe_str_list

    catalog_number = safe_str(row.get('extended_pick_number'))
    year = safe_int(row.get('year'))
    image_urls = safe_str_list(row.get('image_urls'))
    ```
"""

import json

import pandas as pd


def _is_null(value) -> bool:
    # pd.isna on a list returns an array; only scalars are null candidates
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def safe_int(value, default: int = 0) -> int:
    """
    Convert value to int, returning default if null or not numeric.

    Examples:
        >>> safe_int(42)
        42
        >>> safe_int(None)
        0
        >>> safe_int("1915")
        1915
        >>> safe_int("n/a", default=-1)
        -1
    """
    if _is_null(value):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return default


def safe_float(value, default: float = 0.0) -> float:
    """
    Convert value to float, returning default if null or not numeric.

    Examples:
        >>> safe_float("0.25")
        0.25
        >>> safe_float(pd.NA)
        0.0
    """
    if _is_null(value):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def safe_str(value, default: str = "") -> str:
    """
    Convert value to a stripped str, returning default if null.

    Examples:
        >>> safe_str(" P101a ")
        'P101a'
        >>> safe_str(None)
        ''
        >>> safe_str(None, default="Unknown")
        'Unknown'
    """
    if _is_null(value):
        return default
    return str(value).strip()


def safe_optional_str(value) -> str | None:
    """Like safe_str but returns None for null or blank values."""
    text = safe_str(value)
    return text or None


def safe_str_list(value) -> list[str]:
    """
    Convert a list-ish value to a list of non-empty strings.

    Accepts real lists/tuples, JSON-encoded arrays (as stored by sqlite)
    and comma-separated strings.

    Examples:
        >>> safe_str_list(["a.jpg", "", None])
        ['a.jpg']
        >>> safe_str_list('["a.jpg", "b.jpg"]')
        ['a.jpg', 'b.jpg']
        >>> safe_str_list("a.jpg, b.jpg")
        ['a.jpg', 'b.jpg']
        >>> safe_str_list(None)
        []
    """
    if _is_null(value):
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                decoded = json.loads(text)
            except json.JSONDecodeError:
                decoded = None
            if isinstance(decoded, list):
                return [safe_str(v) for v in decoded if safe_str(v)]
        return [part.strip() for part in text.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        return [safe_str(v) for v in value if safe_str(v)]
    return [safe_str(value)] if safe_str(value) else []
