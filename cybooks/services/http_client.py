import logging
from typing import Optional

import httpx

from cybooks.config import settings
from cybooks.exceptions import TransportFailure

logger = logging.getLogger(__name__)


class CatalogHTTPClient:
    """HTTP client with connection pooling used to fetch catalog responses.

    Timeouts belong here; callers get either the response body or a
    ``TransportFailure``. There is deliberately no retry loop.
    """

    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        limits = httpx.Limits(
            max_keepalive_connections=10,
            max_connections=20,
            keepalive_expiry=30.0
        )

        total = timeout if timeout is not None else settings.catalog_timeout
        timeout_config = httpx.Timeout(
            timeout=total,
            connect=min(5.0, total),
        )

        self._client = httpx.Client(
            limits=limits,
            timeout=timeout_config,
            follow_redirects=True,
            headers={
                "User-Agent": user_agent or settings.catalog_user_agent,
                "Accept": "application/xml, text/xml",
            },
        )

    def fetch(self, url: str) -> bytes:
        """GET ``url`` and return the raw body; non-2xx statuses are failures."""
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportFailure(
                f"Catalog returned HTTP {exc.response.status_code} for {url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportFailure(f"Catalog unreachable: {exc}") from exc
        return response.content

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


# Global HTTP client instance
_global_client: Optional[CatalogHTTPClient] = None


def get_http_client() -> CatalogHTTPClient:
    """Get or create the global HTTP client instance"""
    global _global_client
    if _global_client is None:
        _global_client = CatalogHTTPClient()
    return _global_client


def close_http_client() -> None:
    """Close the global HTTP client"""
    global _global_client
    if _global_client:
        _global_client.close()
        _global_client = None
