"""
Rate limit metadata parsing and retry/backoff configuration.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping


@dataclass(slots=True)
class RateLimitInfo:
    """Represents parsed rate limit metadata from Twitter headers."""

    limit: int | None = None
    remaining: int | None = None
    reset_at: int | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimitInfo":
        lowered = {key.lower(): value for key, value in headers.items()}
        return cls(
            limit=_to_int(lowered.get("x-rate-limit-limit")),
            remaining=_to_int(lowered.get("x-rate-limit-remaining")),
            reset_at=_to_int(lowered.get("x-rate-limit-reset")),
        )

    def is_exhausted(self) -> bool:
        return self.remaining is not None and self.remaining <= 0

    def seconds_until_reset(self) -> float | None:
        if self.reset_at is None:
            return None
        now = datetime.now(timezone.utc).timestamp()
        return max(self.reset_at - now, 0.0)


@dataclass(slots=True)
class RetryConfig:
    """Bounds and backoff for retried transport failures."""

    max_retries: int = 3
    base_delay: float = 1.0
    exponential_base: float = 2.0
    max_delay: float = 60.0
    jitter: bool = True

    def calculate_delay(self, attempt: int) -> float:
        delay = min(self.base_delay * (self.exponential_base ** attempt), self.max_delay)
        if self.jitter:
            return random.uniform(0.0, delay)
        return delay


def _to_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
