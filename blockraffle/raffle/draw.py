"""Deterministic winner selection from a block hash."""

from __future__ import annotations

from bisect import bisect_left
from typing import Protocol, Sequence

from ..models import Winner
from .prizes import PRIZE_SHARES, prize_amount

HASH_SIZE = 32
WINDOW_SIZE = 2


class TicketRange(Protocol):
    """Anything exposing a participant and the upper bound of its tickets."""

    public_key: str
    index: int


def winning_ticket(base: int, exponent: int, prize_pool: int) -> int:
    """Return the winning ticket for one tier.

    The ticket is ``base ** exponent mod prize_pool`` shifted by one so that it
    falls in ``[1, prize_pool]``; index zero is never assigned to a bet.

    Parameters
    ----------
    base : int
        Higher-index byte of the hash window.
    exponent : int
        Lower-index byte of the hash window.
    prize_pool : int
        Total number of tickets in the round. Must be at least 1.
    """

    if prize_pool < 1:
        raise ValueError("prize_pool must be a positive integer")
    if not 0 <= base <= 0xFF or not 0 <= exponent <= 0xFF:
        raise ValueError("base and exponent must be byte values")
    return pow(base, exponent, prize_pool) + 1


def ticket_windows(block_hash: bytes, count: int = len(PRIZE_SHARES)) -> list[tuple[int, int]]:
    """Split the tail of ``block_hash`` into ``count`` ``(base, exponent)`` pairs.

    Tier 1 uses the last two bytes, tier 2 the two bytes before them, and so
    on. The hash must already be in canonical byte order.
    """

    if len(block_hash) != HASH_SIZE:
        raise ValueError(f"block hash must be {HASH_SIZE} bytes, got {len(block_hash)}")
    if count * WINDOW_SIZE > len(block_hash):
        raise ValueError("not enough hash bytes for the requested windows")

    windows: list[tuple[int, int]] = []
    i = len(block_hash) - 1
    for _ in range(count):
        windows.append((block_hash[i], block_hash[i - 1]))
        i -= WINDOW_SIZE
    return windows


def locate_bet(bets: Sequence[TicketRange], ticket: int) -> TicketRange:
    """Return the bet that owns ``ticket``.

    ``bets`` must be sorted by ascending ``index``. The owner is the first bet
    whose index is greater than or equal to the ticket.
    """

    if not bets:
        raise ValueError("cannot locate a ticket without bets")
    if ticket < 1 or ticket > bets[-1].index:
        raise ValueError(f"ticket {ticket} is outside [1, {bets[-1].index}]")
    position = bisect_left([bet.index for bet in bets], ticket)
    return bets[position]


def compute_winners(
    block_hash: bytes, prize_pool: int, bets: Sequence[TicketRange]
) -> list[Winner]:
    """Compute the eight winners of a round without touching the database.

    The returned :class:`Winner` objects are transient; the caller attaches
    the draw height and persists them.
    """

    if not bets:
        return []

    winners: list[Winner] = []
    for share, (base, exponent) in zip(PRIZE_SHARES, ticket_windows(block_hash)):
        ticket = winning_ticket(base, exponent, prize_pool)
        winners.append(
            Winner(
                public_key=locate_bet(bets, ticket).public_key,
                ticket=ticket,
                prizes=prize_amount(share, prize_pool),
                prize_pool=prize_pool,
            )
        )
    return winners


__all__ = [
    "HASH_SIZE",
    "WINDOW_SIZE",
    "winning_ticket",
    "ticket_windows",
    "locate_bet",
    "compute_winners",
]
