"""Prize tiers of a draw.

Eight tiers, each worth half of the previous one, starting at 50% of the
prize pool. Shares are exact fractions so the split never drifts for large
pools; amounts are rounded half up. The tiers add up to 255/256 of the pool
(99.609375%) and the remainder is left unallocated. The last tier doubles as
the operator fee.
"""

from __future__ import annotations

import math
from fractions import Fraction

TIER_COUNT = 8

PRIZE_SHARES: tuple[Fraction, ...] = tuple(
    Fraction(1, 2**tier) for tier in range(1, TIER_COUNT + 1)
)
PRIZE_PERCENTAGES: tuple[Fraction, ...] = tuple(share * 100 for share in PRIZE_SHARES)

OPERATOR_FEE_PERCENT = PRIZE_PERCENTAGES[-1]

# Lottery capacity is the remote balance divided by this value.
CAPACITY_DIVISOR = 5

_HALF = Fraction(1, 2)


def total_percentage() -> Fraction:
    """Return the share of the pool paid out across all tiers, in percent."""
    return sum(PRIZE_PERCENTAGES, Fraction(0))


def prize_amount(share: Fraction, prize_pool: int) -> int:
    """Return ``share`` of ``prize_pool`` rounded half up."""
    if prize_pool < 0:
        raise ValueError("prize_pool must not be negative")
    return math.floor(share * prize_pool + _HALF)


def prize_amounts(prize_pool: int) -> list[int]:
    """Return the amount of every tier, highest first."""
    return [prize_amount(share, prize_pool) for share in PRIZE_SHARES]


__all__ = [
    "TIER_COUNT",
    "PRIZE_SHARES",
    "PRIZE_PERCENTAGES",
    "OPERATOR_FEE_PERCENT",
    "CAPACITY_DIVISOR",
    "total_percentage",
    "prize_amount",
    "prize_amounts",
]
