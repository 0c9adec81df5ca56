"""
Pricing calculations.

Flat per-token pricing: the assistant uses a single model billed at one rate
for prompt and completion tokens alike.
"""

from decimal import Decimal

DEFAULT_PRICE_PER_1K_TOKENS = Decimal("0.002")


def calculate_cost(tokens_used: int, price_per_1k: Decimal = DEFAULT_PRICE_PER_1K_TOKENS) -> Decimal:
    """Calculate the dollar cost of a call.

    Args:
        tokens_used: Total tokens (prompt + completion)
        price_per_1k: Dollar price per 1,000 tokens

    Returns:
        Exact cost, ``tokens_used / 1000 * price_per_1k``

    Raises:
        ValueError: If tokens_used is negative
    """
    if tokens_used < 0:
        raise ValueError("tokens_used must be >= 0")
    return (Decimal(tokens_used) / Decimal("1000")) * price_per_1k
