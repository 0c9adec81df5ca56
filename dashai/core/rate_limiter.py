"""
Global daily call ceiling.

One counter per UTC day is shared by every caller. The check-and-increment is
a single atomic upsert in the store, so concurrent first calls of a day can't
both create the counter and lose an increment.

Storage failures fail open: the call is allowed and the fallback is logged.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from dashai.storage.repository import LedgerRepository
from .timezones import utc_day_key, utc_now

logger = logging.getLogger(__name__)

DEFAULT_DAILY_CALL_LIMIT = 2000


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate limit check."""
    allowed: bool
    count: int


# Returned when the counter can't be read or written
FAIL_OPEN_DECISION = RateLimitDecision(allowed=True, count=0)


class RateLimiter:
    """Enforces the shared per-day call ceiling."""

    def __init__(
        self,
        repository: LedgerRepository,
        limit: int = DEFAULT_DAILY_CALL_LIMIT,
        clock: Callable[[], datetime] = utc_now
    ):
        if limit <= 0:
            raise ValueError("limit must be > 0")
        self.repository = repository
        self.limit = limit
        self.clock = clock

    def check(self) -> RateLimitDecision:
        """Count this call against today's ceiling.

        The first call of a day always succeeds with count 1. Once the stored
        count reaches the limit, calls are rejected and the count is left as is.

        Returns:
            RateLimitDecision with the post-increment count when allowed, or
            the stored count when rejected. ``FAIL_OPEN_DECISION`` on any
            storage error.
        """
        now = self.clock()
        day_key = utc_day_key(now)
        try:
            allowed, count = self.repository.increment_call_counter(day_key, self.limit, now)
        except Exception:
            logger.error(
                f"[RateLimiter] Counter for {day_key} unavailable, failing open",
                exc_info=True
            )
            return FAIL_OPEN_DECISION

        if not allowed:
            logger.warning(f"[RateLimiter] Daily limit of {self.limit} reached for {day_key}")
        else:
            logger.debug(f"[RateLimiter] Call {count}/{self.limit} for {day_key}")
        return RateLimitDecision(allowed=allowed, count=count)
