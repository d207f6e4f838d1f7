"""Paginated fetching with quota throttling, retries and backoff.

:class:`PageFetcher` walks the pages of one query until the feed runs out,
the reported page count is reached, retries are exhausted, the body cannot be
parsed, or the cancellation token fires. Whatever was gathered before the
stop is returned; the outcome says whether it is complete.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from pydantic import ValidationError

from makelaarwatch.domain.models import Agent, Listing
from makelaarwatch.infrastructure.http import DEFAULT_PAGE_SIZE, FundaApiClient
from makelaarwatch.infrastructure.observability import (
    get_logger,
    record_page_fetch,
    record_retry,
)
from makelaarwatch.services.dto import ApiPageDTO

from .cancellation import CancellationToken, Sleeper, sleep_until_cancelled, until_cancelled
from .query import QuerySpec
from .results import Failure, FailureKind, Result, Success
from .transformer import TransformPass

logger = get_logger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff for transient page failures.

    The delay before retry ``attempt`` (counted from 1) is
    ``backoff_unit_seconds * backoff_base ** (attempt - 1)``; with the defaults
    that is 1, 2, 4, 8 and 16 minutes.
    """

    max_retries: int = 5
    backoff_unit_seconds: float = 60.0
    backoff_base: float = 2.0

    def delay_for(self, attempt: int) -> float:
        return self.backoff_unit_seconds * self.backoff_base ** max(0, attempt - 1)

    def allows(self, attempt: int) -> bool:
        return attempt <= self.max_retries


class RequestThrottle:
    """Keeps a minimum interval between successive outbound requests.

    The feed allows 100 requests per minute, hence the 0.6 second default.
    One throttle is shared by every query of a cycle so back-to-back queries
    do not burst.
    """

    def __init__(
        self,
        min_interval: float = 0.6,
        *,
        clock: Clock = time.monotonic,
        sleeper: Sleeper = sleep_until_cancelled,
    ) -> None:
        self.min_interval = max(0.0, min_interval)
        self._clock = clock
        self._sleeper = sleeper
        self._last_request: float | None = None

    def _next_delay(self) -> float:
        now = self._clock()
        if self._last_request is None or self.min_interval <= 0:
            return 0.0
        elapsed = now - self._last_request
        return max(0.0, self.min_interval - elapsed)

    async def wait(self, token: CancellationToken) -> bool:
        """Wait out the quota delay; return False if cancelled meanwhile."""
        delay = self._next_delay()
        if delay > 0:
            logger.debug("Quota delay %.3fs before next request", delay)
            if not await self._sleeper(delay, token):
                return False
        self._last_request = self._clock()
        return True


@dataclass
class FetchOutcome:
    """Everything one query produced, plus how the pagination ended."""

    query: QuerySpec
    agents: dict[int, Agent] = field(default_factory=dict)
    listings: list[Listing] = field(default_factory=list)
    pages_fetched: int = 0
    partial: bool = False
    cancelled: bool = False
    failure: Failure | None = None


class PageFetcher:
    """Fetches every page of a query through a :class:`FundaApiClient`."""

    def __init__(
        self,
        client: FundaApiClient,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        retry_policy: RetryPolicy | None = None,
        throttle: RequestThrottle | None = None,
        sleeper: Sleeper = sleep_until_cancelled,
    ) -> None:
        self.client = client
        self.page_size = page_size
        self.retry_policy = retry_policy or RetryPolicy()
        self.throttle = throttle or RequestThrottle(sleeper=sleeper)
        self._sleeper = sleeper

    async def fetch_page(self, url: str) -> Result[ApiPageDTO]:
        """Request and parse a single page, without retrying."""
        response = await self.client.get(url)
        if not response.ok:
            record_page_fetch("transient")
            return Failure(
                FailureKind.TRANSIENT,
                response.error or "empty response",
                status_code=response.status_code,
            )
        try:
            page = ApiPageDTO.from_payload(json.loads(response.text or ""))
        except (json.JSONDecodeError, ValidationError) as exc:
            record_page_fetch("malformed")
            return Failure(FailureKind.MALFORMED, f"{type(exc).__name__}: {exc}")
        record_page_fetch("ok")
        return Success(page)

    async def fetch_all(self, query: QuerySpec, token: CancellationToken) -> FetchOutcome:
        outcome = FetchOutcome(query=query)
        transform_pass = TransformPass(query)
        page_number = 1
        total_pages: int | None = None
        attempt = 0

        while total_pages is None or page_number <= total_pages:
            if token.cancelled or not await self.throttle.wait(token):
                outcome.cancelled = True
                break

            url = self.client.page_url(query, page=page_number, page_size=self.page_size)
            logger.info(
                "Fetching page %d (attempt %d) from %s", page_number, attempt + 1, url
            )
            result = await until_cancelled(self.fetch_page(url), token)

            if isinstance(result, Failure):
                if result.kind is FailureKind.CANCELLED:
                    outcome.cancelled = True
                    break
                if result.kind is FailureKind.MALFORMED:
                    logger.error("Malformed page %d, stopping query: %s", page_number, result.detail)
                    outcome.partial = True
                    outcome.failure = result
                    break

                attempt += 1
                if not self.retry_policy.allows(attempt):
                    logger.warning(
                        "Reached max retry count %d on page %d (%s); keeping %d page(s) fetched so far",
                        self.retry_policy.max_retries,
                        page_number,
                        result.detail,
                        outcome.pages_fetched,
                    )
                    outcome.partial = True
                    outcome.failure = result
                    break

                delay = self.retry_policy.delay_for(attempt)
                logger.warning(
                    "Page %d failed (%s); retrying in %.1fs (attempt %d/%d)",
                    page_number,
                    result.detail,
                    delay,
                    attempt,
                    self.retry_policy.max_retries,
                )
                record_retry(delay)
                if not await self._sleeper(delay, token):
                    outcome.cancelled = True
                    break
                continue

            page = result.value
            attempt = 0
            if not page.objects:
                logger.info("No more objects found on page %d", page_number)
                break
            if page.paging is not None and page.paging.total_pages is not None:
                total_pages = page.paging.total_pages

            transform_pass.add_page(page, url)
            outcome.pages_fetched += 1
            page_number += 1

        outcome.agents = transform_pass.agents
        outcome.listings = transform_pass.listings
        logger.info(
            "Fetched %d listing(s) and %d agent(s) over %d page(s)%s",
            len(outcome.listings),
            len(outcome.agents),
            outcome.pages_fetched,
            " (partial)" if outcome.partial else "",
        )
        return outcome


__all__ = ["FetchOutcome", "PageFetcher", "RequestThrottle", "RetryPolicy"]
