"""Configuration management utilities for the CSR spending tools.

Provides:
- Config: base class with dict round-tripping
- AppConfig: application settings loaded from environment variables
- ColumnMapping: source CSV header aliases -> Record field names
- KnownValues: constants shared by the API and the exporters
"""

import os as _os
from typing import Any, Dict, Optional

from utils.strings import normalize_header

# Published-to-web CSV of the CSR spending sheet.
DEFAULT_SOURCE_URL = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vRaDCGxkQyoqBF6_genJT1KztlWoeY8cNLMlIRSlSKSvRLidz_449ZFzbrO0sCQFf9HGiYdySFa8weC"
    "/pub?output=csv"
)


class Config:
    """Base configuration class for organizing application settings."""

    def __init__(self):
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary (private attributes excluded)."""
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary, overriding defaults key by key."""
        config = cls()
        for key, value in data.items():
            setattr(config, key, value)
        return config


def _env_int(name: str, default: int) -> int:
    raw = _os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = _os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


class AppConfig(Config):
    """Application-level configuration loaded from environment variables.

    All env vars have sensible defaults so the application works out of the
    box without any configuration.

    Environment variables:
        CSR_SOURCE_URL: Published CSV URL of the CSR sheet
        CSR_CACHE_TTL: Seconds a fetched CSV stays fresh (default: 300)
        CSR_FETCH_TIMEOUT: Upstream request timeout in seconds (default: 30)
        CSR_MIN_RECORDS: Fewer parsed rows than this is a failed load (default: 10)
        CSR_DISPLAY_LIMIT: Rows in the dashboard table projection (default: 50)
        CSR_PAGE_SIZE: Default page size for /records (default: 100)
        CSR_DEBOUNCE_MS: Debounce window for interactive filter input (default: 300)
        APP_HOST: API server bind address (default: 127.0.0.1)
        APP_PORT: API server port (default: 8000)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
    """

    def __init__(self) -> None:
        super().__init__()
        self.source_url = _os.getenv("CSR_SOURCE_URL", DEFAULT_SOURCE_URL)
        self.cache_ttl_seconds = _env_float("CSR_CACHE_TTL", 300.0)
        self.fetch_timeout = _env_float("CSR_FETCH_TIMEOUT", 30.0)
        self.min_records = _env_int("CSR_MIN_RECORDS", 10)
        self.display_limit = _env_int("CSR_DISPLAY_LIMIT", 50)
        self.page_size = _env_int("CSR_PAGE_SIZE", 100)
        self.debounce_ms = _env_int("CSR_DEBOUNCE_MS", 300)
        self.api_host = _os.getenv("APP_HOST", "127.0.0.1")
        self.api_port = _env_int("APP_PORT", 8000)
        self.log_format = _os.getenv("APP_LOG_FORMAT", "text")
        raw_origins = _os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()


class ColumnMapping:
    """Maps source CSV headers to Record field names.

    The sheet has been published under two header schemes (the dashboard's
    "State/UT" / "Development Sector" / "Spending (₹ Cr)" and the raw MCA
    export's "CSR State" / "CSR Development Sector" /
    "Project Amount Spent (In INR Cr.)"). Aliases are compared after
    normalize_header(), so case and punctuation differences don't matter.
    """

    FIELD_ALIASES: Dict[str, tuple[str, ...]] = {
        "company_name": ("Company Name", "Company"),
        "state_or_ut": ("State/UT", "CSR State", "State"),
        "sector": ("Development Sector", "CSR Development Sector", "Sector"),
        "ownership_type": ("PSU/Non-PSU", "PSU Non PSU", "Ownership"),
        "spending_amount": (
            "Spending (₹ Cr)",
            "Project Amount Spent (In INR Cr.)",
            "Amount Spent (INR Cr)",
            "Spending",
            "Amount Spent",
        ),
    }

    # Headers used when exporting; exports always use the dashboard scheme.
    EXPORT_HEADERS: Dict[str, str] = {
        "company_name": "Company Name",
        "spending_amount": "Spending (₹ Cr)",
        "state_or_ut": "State/UT",
        "sector": "Development Sector",
        "ownership_type": "PSU/Non-PSU",
    }

    @classmethod
    def alias_index(cls) -> Dict[str, str]:
        """Return normalized alias -> field name."""
        index: Dict[str, str] = {}
        for field_name, aliases in cls.FIELD_ALIASES.items():
            for alias in aliases:
                index.setdefault(normalize_header(alias), field_name)
        return index

    @classmethod
    def resolve(cls, headers: list[str]) -> Dict[int, str]:
        """Map header positions to field names.

        The first header matching a field wins; later duplicates and
        unknown headers are ignored.

        Returns:
            Dict of column index -> Record field name.
        """
        index = cls.alias_index()
        resolved: Dict[int, str] = {}
        seen: set[str] = set()
        for pos, header in enumerate(headers):
            field_name = index.get(normalize_header(header))
            if field_name and field_name not in seen:
                resolved[pos] = field_name
                seen.add(field_name)
        return resolved

    @classmethod
    def field_for(cls, header: str) -> Optional[str]:
        """Return the Record field a single header maps to, if any."""
        return cls.alias_index().get(normalize_header(header))


class KnownValues:
    """Container for known values used by the API and exporters."""

    # Chart groupings exposed by /aggregations
    GROUPINGS = {
        "state": "state_or_ut",
        "sector": "sector",
    }

    # Label used in charts for records with an empty group value
    UNKNOWN_LABEL = "Unknown"

    EXPORT_SHEET_NAME = "CSR Data"
    EXPORT_FILE_PREFIX = "csr-dashboard-export"

    @classmethod
    def grouping_field(cls, group_by: str) -> Optional[str]:
        """Return the Record field for a chart grouping, or None."""
        return cls.GROUPINGS.get(group_by)
