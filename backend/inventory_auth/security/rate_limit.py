"""Redis-backed request throttling, skipped when no limiter is initialised."""

from __future__ import annotations

import re

from fastapi import Depends, Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter

_SECONDS_PER_UNIT = {
    "second": 1,
    "minute": 60,
    "hour": 3600,
    "day": 86400,
}

_RATE_PATTERN = re.compile(r"^\s*(\d+)\s*/\s*(\d+)?\s*([a-z]+?)s?\s*$", re.IGNORECASE)


def parse_rate(value: str, *, fallback: tuple[int, int]) -> tuple[int, int]:
    """Parse ``"5/15 minutes"`` or ``"100/minute"`` into ``(times, seconds)``."""
    match = _RATE_PATTERN.match(value)
    if match is None:
        return fallback
    count, multiplier, unit = match.groups()
    seconds = _SECONDS_PER_UNIT.get(unit.lower())
    if seconds is None:
        return fallback
    return int(count), seconds * int(multiplier or 1)


def rate_dependency(limit: tuple[int, int]):
    async def _dependency(request: Request, response: Response) -> None:
        if FastAPILimiter.redis is None:
            return None
        limiter = RateLimiter(times=limit[0], seconds=limit[1])
        await limiter(request, response)

    return Depends(_dependency)


__all__ = ["parse_rate", "rate_dependency"]
