"""String processing utilities for the link catalog tools.

These helpers sit on the hot path of batch validation and filter parsing,
so they lean on the pre-compiled patterns in utils.patterns.
"""

from typing import Any

from utils.patterns import (
    DOUBLE_DOT,
    EMAIL,
    INTEGER,
    LIKE_SPECIAL_CHARS,
    NUMERIC,
    URL_SCHEME,
)


def is_numeric(val: Any) -> bool:
    """Return True if val is a number or a numeric string.

    Handles:
    - int / float -> True (bool is rejected even though it subclasses int)
    - "12", "-3.5", ".5", "1e3", " 42 " -> True
    - None, "", "12abc", "1,000" -> False
    """
    if isinstance(val, bool):
        return False
    if isinstance(val, (int, float)):
        return True
    if isinstance(val, str):
        return NUMERIC.match(val) is not None
    return False


def is_valid_email(val: Any) -> bool:
    """Check that val looks like an email address (syntax only, no DNS)."""
    if not isinstance(val, str):
        return False
    val = val.strip()
    if not val or DOUBLE_DOT.search(val):
        return False
    return EMAIL.match(val) is not None


def coerce_number(val: Any) -> Any:
    """Convert a numeric string to int or float; return anything else unchanged.

    Example:
        "10" -> 10, "2.5" -> 2.5, "abc" -> "abc", None -> None
    """
    if isinstance(val, bool) or not isinstance(val, str):
        return val
    if INTEGER.match(val):
        return int(val)
    if NUMERIC.match(val):
        return float(val)
    return val


def format_resource_url(url: str) -> str:
    """Strip the scheme and a leading "www." from a resource URL.

    Example:
        "https://www.example.com/blog" -> "example.com/blog"
    """
    url = URL_SCHEME.sub("", url.strip())
    if url.lower().startswith("www."):
        url = url[4:]
    return url


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so value matches literally (ESCAPE '\\')."""
    return LIKE_SPECIAL_CHARS.sub(r"\\\1", value)


def display_value(val: Any) -> str:
    """Render a raw submitted value for an error message ("" for missing)."""
    if val is None:
        return ""
    return str(val)
