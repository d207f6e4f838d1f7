"""HTTP adapters for Makelaarwatch.

This package provides the client used to page through the Funda listing feed.
"""

from .client import DEFAULT_PAGE_SIZE, FundaApiClient, HttpResult

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "FundaApiClient",
    "HttpResult",
]
