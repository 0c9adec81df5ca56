"""
Usage reporting: turns token counts into cost and writes the ledgers.
"""

from decimal import Decimal

from .cost_ledger import CostLedger
from .pricing import DEFAULT_PRICE_PER_1K_TOKENS, calculate_cost


class UsageReporter:
    """Prices a call's tokens and records them in the cost ledger."""

    def __init__(self, ledger: CostLedger, price_per_1k: Decimal = DEFAULT_PRICE_PER_1K_TOKENS):
        self.ledger = ledger
        self.price_per_1k = price_per_1k

    def report(self, tokens_used: int) -> Decimal:
        """Price ``tokens_used`` and add it to the ledgers.

        Never fails the request; ``CostLedger.record`` absorbs write errors.

        Returns:
            The call's dollar cost
        """
        cost = calculate_cost(tokens_used, self.price_per_1k)
        self.ledger.record(tokens_used, cost)
        return cost
