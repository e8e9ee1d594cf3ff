"""Retry timing for rate-limited provider calls."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

Sleep = Callable[[float], Awaitable[None]]


def backoff_delay(attempt: int, base_delay_s: float, factor: float = 2.0) -> float:
    """Delay before retry number ``attempt`` (0-indexed): base, 2*base, 4*base, ..."""
    if attempt < 0:
        raise ValueError("attempt must be >= 0")
    return base_delay_s * (factor**attempt)


async def real_sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)
