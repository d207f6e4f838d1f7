"""Cooperative cancellation for the sync loop.

A single :class:`CancellationToken` is created by whoever owns the scheduler
(the CLI installs it on SIGINT/SIGTERM) and is passed through every call that
can suspend: HTTP requests, quota and backoff sleeps, and the inter-cycle
sleep.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .results import CANCELLED, Result

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation flag that async code can both poll and await."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


Sleeper = Callable[[float, CancellationToken], Awaitable[bool]]


async def sleep_until_cancelled(delay: float, token: CancellationToken) -> bool:
    """Sleep for ``delay`` seconds; return False if cancelled before it elapsed."""
    if token.cancelled:
        return False
    if delay <= 0:
        return True
    try:
        await asyncio.wait_for(token.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return True
    return False


async def until_cancelled(
    operation: Awaitable[Result[T]], token: CancellationToken
) -> Result[T]:
    """Await ``operation`` unless the token fires first.

    When the token wins, the operation task is cancelled and awaited so no
    request is left running in the background.
    """
    task = asyncio.ensure_future(operation)
    if token.cancelled:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        return CANCELLED

    waiter = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except BaseException:
        task.cancel()
        raise
    finally:
        waiter.cancel()
        await asyncio.gather(waiter, return_exceptions=True)

    if task.done():
        return task.result()
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    return CANCELLED


__all__ = [
    "CancellationToken",
    "Sleeper",
    "sleep_until_cancelled",
    "until_cancelled",
]
