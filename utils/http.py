"""HTTP utilities for the CSR spending tools.

Provides:
- SessionManager: pooled requests.Session with retries switched off
- fetch_text(): one-shot GET that returns decoded text or raises

The upstream sheet is fetched once per cache window. A failed fetch is
surfaced to the caller immediately; there is no retry or backoff.
"""

import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter

logger = logging.getLogger("csr_dashboard.http")


class FetchError(Exception):
    """Raised when an upstream GET fails or returns a non-success status."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"GET {url} failed: {reason}")


class SessionManager:
    """Manages an HTTP session with connection pooling and no retries."""

    def __init__(self, pool_connections: int = 4, pool_maxsize: int = 8,
                 user_agent: str = "csr-dashboard/1.0"):
        """Initialize session manager.

        Args:
            pool_connections: Number of connection pools to cache
            pool_maxsize: Maximum number of connections per pool
            user_agent: User-Agent header sent upstream
        """
        self.pool_connections = pool_connections
        self.pool_maxsize = pool_maxsize
        self.user_agent = user_agent
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Get or create the pooled session."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers["User-Agent"] = self.user_agent
            adapter = HTTPAdapter(
                max_retries=0,
                pool_connections=self.pool_connections,
                pool_maxsize=self.pool_maxsize,
            )
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)
        return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def fetch_text(url: str, session: Optional[requests.Session] = None,
               timeout: float = 30) -> str:
    """GET *url* once and return the body as UTF-8 text.

    Args:
        url: URL to fetch
        session: Optional requests.Session (default: a throwaway session)
        timeout: Request timeout in seconds

    Returns:
        Response body decoded as UTF-8.

    Raises:
        FetchError: On connection errors, timeouts, or a non-2xx status.
    """
    own_session = session is None
    if own_session:
        session = requests.Session()

    try:
        resp = session.get(url, timeout=timeout)
    except requests.RequestException as e:
        logger.error("fetch failed url=%s error=%s", url, e)
        raise FetchError(url, str(e)) from e
    finally:
        if own_session:
            session.close()

    if not resp.ok:
        logger.error("fetch failed url=%s status=%d", url, resp.status_code)
        raise FetchError(url, f"HTTP {resp.status_code}", status_code=resp.status_code)

    # Published sheets are UTF-8 but don't always say so in Content-Type
    resp.encoding = "utf-8"
    text = resp.text
    logger.info("fetched url=%s bytes=%d", url, len(text))
    return text
