"""Output formatting utilities for the CSR spending tools.

Provides reusable functions for:
- Formatting ₹ crore amounts and counts
- Map fill colors from region intensity
- Human-readable filter summaries
"""

from typing import Iterable, Optional


def format_amount(value: Optional[float], precision: int = 2,
                  thousands_sep: bool = True) -> str:
    """Format a crore amount for display, at most *precision* decimals.

    Trailing zeros are trimmed the way the dashboard always displayed them
    (``toLocaleString`` with ``maximumFractionDigits: 2``).

    Args:
        value: Amount in ₹ crore (None is treated as 0)
        precision: Maximum decimal places (default: 2)
        thousands_sep: Add thousands separator (default: True)

    Returns:
        Formatted string without currency symbol.

    Examples:
        format_amount(1234.5)   -> "1,234.5"
        format_amount(1000)     -> "1,000"
        format_amount(0.126)    -> "0.13"
        format_amount(None)     -> "0"
    """
    if value is None:
        value = 0.0
    spec = f",.{precision}f" if thousands_sep else f".{precision}f"
    text = format(round(value, precision), spec)
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


def format_inr_crore(value: Optional[float], precision: int = 2) -> str:
    """Format an amount as ``₹1,234.5 Cr``."""
    return f"₹{format_amount(value, precision)} Cr"


def format_count(value: Optional[int]) -> str:
    """Format a count with thousands separator.

    Examples:
        format_count(26984) -> "26,984"
        format_count(None)  -> "-"
    """
    if value is None:
        return "-"
    return f"{value:,d}"


def intensity_fill(intensity: float, rgb: tuple[int, int, int] = (0, 123, 255)) -> str:
    """Return the map fill for a region intensity in [0, 1].

    Examples:
        intensity_fill(0.5) -> "rgba(0, 123, 255, 0.5)"
    """
    alpha = min(1.0, max(0.0, intensity))
    r, g, b = rgb
    return f"rgba({r}, {g}, {b}, {round(alpha, 4):g})"


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """Truncate text to maximum length with ellipsis.

    Examples:
        truncate_text("Long text here", 10) -> "Long te..."
        truncate_text("Short", 10) -> "Short"
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix


def summarize_filters(parts: Iterable[tuple[str, Iterable[str]]]) -> str:
    """Join active filter dimensions into ``name=a,b; name2=c``.

    Dimensions with no values are left out; returns "none" when nothing
    is active.
    """
    active = []
    for name, values in parts:
        vals = [v for v in values if v]
        if vals:
            active.append(f"{name}={','.join(vals)}")
    return "; ".join(active) if active else "none"
