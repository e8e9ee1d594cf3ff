"""Fan-out helper for concurrent provider calls."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable


async def gather_or_cancel(*aws: Awaitable[Any]) -> list[Any]:
    """Like ``asyncio.gather`` but cancels the siblings as soon as one call fails."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except Exception:
        for task in tasks:
            task.cancel()
        # Let cancelled siblings unwind before the error propagates
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
