"""Raffle engine: ticket derivation, prize tiers, expiry and the draw itself."""

from .draw import compute_winners, locate_bet, ticket_windows, winning_ticket
from .engine import RaffleEngine
from .expiry import ExpiryReport, expiry_threshold, sweep_expired
from .prizes import (
    CAPACITY_DIVISOR,
    OPERATOR_FEE_PERCENT,
    PRIZE_PERCENTAGES,
    PRIZE_SHARES,
    prize_amount,
    prize_amounts,
    total_percentage,
)

__all__ = [
    "CAPACITY_DIVISOR",
    "ExpiryReport",
    "OPERATOR_FEE_PERCENT",
    "PRIZE_PERCENTAGES",
    "PRIZE_SHARES",
    "RaffleEngine",
    "compute_winners",
    "expiry_threshold",
    "locate_bet",
    "prize_amount",
    "prize_amounts",
    "sweep_expired",
    "ticket_windows",
    "total_percentage",
    "winning_ticket",
]
