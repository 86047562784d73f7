"""Shared utilities for the CSR spending tools."""

# Pattern definitions
from utils.patterns import (
    WHITESPACE,
    CURRENCY_SYMBOLS,
    THOUSANDS_SEPARATOR,
    HEADER_PUNCTUATION,
)

# String utilities
from utils.strings import parse_amount, normalize_whitespace, normalize_header

# Caching
from utils.cache import TTLCache

# HTTP utilities
from utils.http import FetchError, SessionManager, fetch_text

# Output formatting
from utils.formatting import (
    format_amount,
    format_inr_crore,
    format_count,
    intensity_fill,
    truncate_text,
    summarize_filters,
)

# Configuration
from utils.config import (
    Config,
    AppConfig,
    KnownValues,
    ColumnMapping,
)

__all__ = [
    # Patterns
    "WHITESPACE",
    "CURRENCY_SYMBOLS",
    "THOUSANDS_SEPARATOR",
    "HEADER_PUNCTUATION",
    # Strings
    "parse_amount",
    "normalize_whitespace",
    "normalize_header",
    # Cache
    "TTLCache",
    # HTTP
    "FetchError",
    "SessionManager",
    "fetch_text",
    # Formatting
    "format_amount",
    "format_inr_crore",
    "format_count",
    "intensity_fill",
    "truncate_text",
    "summarize_filters",
    # Config
    "Config",
    "AppConfig",
    "KnownValues",
    "ColumnMapping",
]
