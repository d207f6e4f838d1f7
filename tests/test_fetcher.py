import asyncio

import httpx

from feed_stubs import API_URL, FakeClock, feed_transport, page_body, record
from makelaarwatch.infrastructure.http import FundaApiClient
from makelaarwatch.infrastructure.observability import get_registry
from makelaarwatch.services.sync import (
    CancellationToken,
    FailureKind,
    PageFetcher,
    QuerySpec,
    RequestThrottle,
    RetryPolicy,
)

PLAIN = "/amsterdam/"


def _fetcher(http: httpx.AsyncClient, clock: FakeClock, retry: RetryPolicy, sleeper=None) -> PageFetcher:
    sleeper = sleeper or clock.sleep
    return PageFetcher(
        FundaApiClient(API_URL, client=http),
        retry_policy=retry,
        throttle=RequestThrottle(0.6, clock=clock, sleeper=sleeper),
        sleeper=sleeper,
    )


def test_transient_failures_back_off_then_succeed(clock: FakeClock) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) <= 3:
            return httpx.Response(503)
        return httpx.Response(200, json=page_body([record("L1", 10, "Alice")]))

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            fetcher = _fetcher(http, clock, RetryPolicy(backoff_unit_seconds=1.0))
            return await fetcher.fetch_all(QuerySpec(), CancellationToken())

    outcome = asyncio.run(run())

    assert len(calls) == 4
    assert clock.sleeps == [1.0, 2.0, 4.0]
    assert sum(clock.sleeps) == 1.0 + 2 * 1.0 + 4 * 1.0
    assert not outcome.partial
    assert not outcome.cancelled
    assert outcome.pages_fetched == 1
    assert [listing.id for listing in outcome.listings] == ["L1"]
    assert get_registry().counter("page_retries_total").get() == 3


def test_exhausted_retries_keep_earlier_pages_as_partial(clock: FakeClock) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.url.params["page"] == "1":
            return httpx.Response(200, json=page_body([record("L1", 10, "Alice")], 1, 2))
        return httpx.Response(503)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            fetcher = _fetcher(http, clock, RetryPolicy(max_retries=2, backoff_unit_seconds=1.0))
            return await fetcher.fetch_all(QuerySpec(), CancellationToken())

    outcome = asyncio.run(run())

    assert len(calls) == 4
    # Quota delay before page 2, then two backoff sleeps.
    assert clock.sleeps == [0.6, 1.0, 2.0]
    assert outcome.partial
    assert outcome.failure is not None
    assert outcome.failure.kind is FailureKind.TRANSIENT
    assert outcome.failure.status_code == 503
    assert [listing.id for listing in outcome.listings] == ["L1"]


def test_malformed_body_stops_query_without_retry(clock: FakeClock) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, text="<html>maintenance</html>")

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            fetcher = _fetcher(http, clock, RetryPolicy(backoff_unit_seconds=1.0))
            return await fetcher.fetch_all(QuerySpec(), CancellationToken())

    outcome = asyncio.run(run())

    assert len(calls) == 1
    assert clock.sleeps == []
    assert outcome.partial
    assert outcome.failure is not None
    assert outcome.failure.kind is FailureKind.MALFORMED


def test_record_without_agent_is_malformed(clock: FakeClock) -> None:
    body = page_body([{"Id": "L1", "Woonplaats": "Amsterdam"}])

    async def run():
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))
        async with httpx.AsyncClient(transport=transport) as http:
            fetcher = _fetcher(http, clock, RetryPolicy())
            return await fetcher.fetch_page(f"{API_URL}?page=1")

    result = asyncio.run(run())

    assert not result.ok
    assert result.kind is FailureKind.MALFORMED


def test_pagination_stops_at_reported_page_count(clock: FakeClock) -> None:
    calls: list[httpx.Request] = []
    pages = {
        (PLAIN, 1): page_body([record("L1", 10)], 1, 2),
        (PLAIN, 2): page_body([record("L2", 11)], 2, 2),
        (PLAIN, 3): page_body([record("L3", 12)], 3, 3),
    }

    async def run():
        async with httpx.AsyncClient(transport=feed_transport(pages, calls)) as http:
            fetcher = _fetcher(http, clock, RetryPolicy())
            return await fetcher.fetch_all(QuerySpec(), CancellationToken())

    outcome = asyncio.run(run())

    assert [request.url.params["page"] for request in calls] == ["1", "2"]
    assert outcome.pages_fetched == 2
    assert sorted(listing.id for listing in outcome.listings) == ["L1", "L2"]
    assert not outcome.partial


def test_pagination_stops_at_first_empty_page(clock: FakeClock) -> None:
    calls: list[httpx.Request] = []
    pages = {(PLAIN, 1): page_body([record("L1", 10)], 1, 5)}

    async def run():
        async with httpx.AsyncClient(transport=feed_transport(pages, calls)) as http:
            fetcher = _fetcher(http, clock, RetryPolicy())
            return await fetcher.fetch_all(QuerySpec(), CancellationToken())

    outcome = asyncio.run(run())

    assert len(calls) == 2
    assert outcome.pages_fetched == 1
    assert not outcome.partial


def test_cancel_during_backoff_makes_no_further_request(clock: FakeClock) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.url.params["page"] == "1":
            return httpx.Response(200, json=page_body([record("L1", 10, "Alice")], 1, 2))
        return httpx.Response(503)

    async def cancelling_sleeper(delay: float, token: CancellationToken) -> bool:
        if delay >= 60:
            token.cancel()
            return False
        return await clock.sleep(delay, token)

    async def run():
        token = CancellationToken()
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            fetcher = _fetcher(http, clock, RetryPolicy(), sleeper=cancelling_sleeper)
            return await fetcher.fetch_all(QuerySpec(), token), token

    outcome, token = asyncio.run(run())

    assert token.cancelled
    assert len(calls) == 2
    assert outcome.cancelled
    assert [listing.id for listing in outcome.listings] == ["L1"]


def test_cancel_aborts_request_in_flight() -> None:
    async def slow_handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(10)
        return httpx.Response(200, json=page_body([]))

    async def run():
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)
        async with httpx.AsyncClient(transport=httpx.MockTransport(slow_handler)) as http:
            fetcher = PageFetcher(FundaApiClient(API_URL, client=http))
            return await asyncio.wait_for(fetcher.fetch_all(QuerySpec(), token), timeout=5)

    outcome = asyncio.run(run())

    assert outcome.cancelled
    assert outcome.pages_fetched == 0


def test_throttle_spaces_requests(clock: FakeClock) -> None:
    throttle = RequestThrottle(0.6, clock=clock, sleeper=clock.sleep)

    async def run():
        token = CancellationToken()
        return [await throttle.wait(token) for _ in range(3)]

    assert asyncio.run(run()) == [True, True, True]
    assert clock.sleeps == [0.6, 0.6]


def test_throttle_reports_cancellation(clock: FakeClock) -> None:
    throttle = RequestThrottle(0.6, clock=clock, sleeper=clock.sleep)

    async def run():
        token = CancellationToken()
        first = await throttle.wait(token)
        token.cancel()
        return first, await throttle.wait(token)

    assert asyncio.run(run()) == (True, False)


def test_retry_policy_schedule() -> None:
    policy = RetryPolicy()

    assert [policy.delay_for(attempt) for attempt in (1, 2, 3, 4, 5)] == [
        60.0,
        120.0,
        240.0,
        480.0,
        960.0,
    ]
    assert policy.allows(5)
    assert not policy.allows(6)
