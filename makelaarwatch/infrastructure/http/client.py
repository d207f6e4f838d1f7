"""Async HTTP client for the Funda search feed.

The client knows how to build a page URL for a query and performs exactly one
GET per call. Retrying, throttling and cancellation are the page fetcher's
job; the client only classifies each outcome into a :class:`HttpResult`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from makelaarwatch.infrastructure.observability.logging import get_logger

if TYPE_CHECKING:
    from makelaarwatch.services.sync.query import QuerySpec

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 25


@dataclass(frozen=True)
class HttpResult:
    """Outcome of a single GET request."""

    url: str
    status_code: int | None
    text: str | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.status_code == 200 and self.text is not None


class FundaApiClient:
    """Thin wrapper around :class:`httpx.AsyncClient` for the listing feed.

    Usage::

        async with FundaApiClient("https://partnerapi.funda.nl/feeds/Aanbod.svc/json/KEY/") as api:
            result = await api.get(api.page_url(query, page=1))
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
        user_agent: str = "",  # Empty string triggers dynamic version lookup
    ) -> None:
        from makelaarwatch import __version__

        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self.headers = {"User-Agent": user_agent or f"makelaarwatch-sync/{__version__}"}
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "FundaApiClient":
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_seconds)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def page_url(
        self, query: "QuerySpec", *, page: int, page_size: int = DEFAULT_PAGE_SIZE
    ) -> str:
        """Build ``<base>?type=<t>&zo=/<locality>/<feature>/&page=<n>&pagesize=<size>``."""
        separator = "&" if "?" in self.base_url else "?"
        return (
            f"{self.base_url}{separator}type={quote(query.search_type)}"
            f"&zo={quote(query.zo_path, safe='/')}"
            f"&page={page}&pagesize={page_size}"
        )

    async def get(self, url: str) -> HttpResult:
        """Issue one GET; transport errors are returned, not raised."""
        client = self._get_client()
        try:
            response = await client.get(url, headers=self.headers)
        except httpx.TimeoutException as exc:
            return HttpResult(url=url, status_code=None, text=None, error=f"timeout: {exc}")
        except httpx.HTTPError as exc:
            # DNS errors, connection refused, TLS, etc.
            return HttpResult(
                url=url, status_code=None, text=None, error=f"{type(exc).__name__}: {exc}"
            )

        if response.status_code != 200:
            logger.debug("GET %s returned HTTP %d", url, response.status_code)
            return HttpResult(
                url=url,
                status_code=response.status_code,
                text=None,
                error=f"HTTP {response.status_code}",
            )
        return HttpResult(
            url=url,
            status_code=response.status_code,
            text=response.text,
        )


__all__ = ["DEFAULT_PAGE_SIZE", "FundaApiClient", "HttpResult"]
