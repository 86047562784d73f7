"""String processing utilities for the CSR spending tools.

parse_amount() is the single numeric parser shared by every aggregate
(summary metrics, region totals, chart series, display rows), so the same
raw string always contributes the same number everywhere.
"""

import math

from utils.patterns import (
    CURRENCY_SYMBOLS,
    HEADER_PUNCTUATION,
    THOUSANDS_SEPARATOR,
    WHITESPACE,
)


def parse_amount(val, default: float = 0.0) -> float:
    """Convert a raw spending cell to a float, never raising.

    Handles:
    - None, empty strings -> default
    - Numeric types -> float
    - Strings with currency symbols, whitespace, thousands separators
    - Non-numeric or non-finite input (``"abc"``, ``"nan"``, ``"inf"``) -> default

    Examples:
        parse_amount("1,234.5") -> 1234.5
        parse_amount("₹ 2,000") -> 2000.0
        parse_amount("abc")     -> 0.0
        parse_amount(None)      -> 0.0

    Args:
        val: Value to convert (any type)
        default: Value to return on failure (default: 0.0)

    Returns:
        float: Parsed value or default
    """
    if val is None or val == '':
        return default
    if isinstance(val, bool):
        return default
    if isinstance(val, (int, float)):
        result = float(val)
        return result if math.isfinite(result) else default

    try:
        s = CURRENCY_SYMBOLS.sub('', str(val))
        s = THOUSANDS_SEPARATOR.sub('', s).strip()
        result = float(s) if s else default
    except (ValueError, TypeError):
        return default
    return result if math.isfinite(result) else default


def normalize_whitespace(s: str) -> str:
    """Normalize multiple whitespace characters to single spaces.

    Example:
        "Tata   Steel\\n Ltd" -> "Tata Steel Ltd"
    """
    return WHITESPACE.sub(' ', s).strip()


def normalize_header(header: str) -> str:
    """Reduce a CSV header cell to a comparison key.

    Lowercases, strips a leading BOM, turns punctuation into spaces and
    collapses whitespace, so "State/UT", "state / ut" and "STATE UT" all
    map to "state ut".
    """
    if not header:
        return ""
    s = str(header).lstrip("\ufeff").lower()
    s = HEADER_PUNCTUATION.sub(' ', s)
    return normalize_whitespace(s)
