"""
Daily and monthly cost ledgers.

Usage is accumulated with additive increments so concurrent requests sum
correctly. Recording never raises: a failed write is logged and the ledger
undercounts, but the request that produced the usage still succeeds.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable

from dashai.storage.repository import LedgerRepository
from .timezones import utc_day_key, utc_month_key, utc_now

logger = logging.getLogger(__name__)


class CostLedger:
    """Accumulates token and dollar usage per UTC day and month."""

    def __init__(
        self,
        repository: LedgerRepository,
        clock: Callable[[], datetime] = utc_now
    ):
        self.repository = repository
        self.clock = clock

    def record(self, tokens_used: int, cost_usd: Decimal) -> None:
        """Add one call's usage to today's and this month's ledgers.

        Args:
            tokens_used: Total tokens consumed by the call
            cost_usd: Dollar cost of the call
        """
        now = self.clock()
        day_key = utc_day_key(now)
        month_key = utc_month_key(now)
        try:
            self.repository.add_cost(day_key, month_key, tokens_used, cost_usd)
        except Exception:
            logger.error(
                f"[CostLedger] Failed to record {tokens_used} tokens (${cost_usd}) "
                f"for {day_key}; ledger will undercount",
                exc_info=True
            )
            return
        logger.debug(f"[CostLedger] Recorded {tokens_used} tokens (${cost_usd}) for {day_key}")
