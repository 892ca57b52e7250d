from __future__ import annotations

import unittest
from fractions import Fraction

from blockraffle.models.bet import BetEntry
from blockraffle.raffle import (
    OPERATOR_FEE_PERCENT,
    PRIZE_PERCENTAGES,
    compute_winners,
    locate_bet,
    prize_amount,
    prize_amounts,
    ticket_windows,
    total_percentage,
    winning_ticket,
)


def make_hash(windows: list[tuple[int, int]]) -> bytes:
    """Build a 32-byte hash whose tail encodes ``(base, exponent)`` per tier."""
    data = bytearray(32)
    for tier, (base, exponent) in enumerate(windows):
        data[31 - 2 * tier] = base
        data[30 - 2 * tier] = exponent
    return bytes(data)


def make_bets(*ranges: tuple[str, int]) -> list[BetEntry]:
    bets = []
    previous = 0
    for public_key, index in ranges:
        bets.append(BetEntry(public_key=public_key, index=index, tickets=index - previous))
        previous = index
    return bets


class WinningTicketTests(unittest.TestCase):
    def test_reference_vector(self) -> None:
        # 5 ** 3 mod 1000 = 125, shifted by one.
        self.assertEqual(winning_ticket(5, 3, 1000), 126)

    def test_higher_byte_is_the_base(self) -> None:
        self.assertEqual(winning_ticket(2, 3, 1000), 9)
        self.assertEqual(winning_ticket(3, 2, 1000), 10)

    def test_ticket_is_always_in_pool_range(self) -> None:
        for prize_pool in (1, 2, 7, 256, 1000, 2**64 + 13):
            for base in range(256):
                for exponent in range(256):
                    ticket = winning_ticket(base, exponent, prize_pool)
                    self.assertGreaterEqual(ticket, 1)
                    self.assertLessEqual(ticket, prize_pool)

    def test_single_ticket_pool_always_wins_ticket_one(self) -> None:
        self.assertEqual(winning_ticket(0, 0, 1), 1)
        self.assertEqual(winning_ticket(255, 255, 1), 1)

    def test_zero_to_the_zero_is_one(self) -> None:
        self.assertEqual(winning_ticket(0, 0, 1000), 2)

    def test_is_deterministic(self) -> None:
        self.assertEqual(
            winning_ticket(201, 77, 987_654_321),
            winning_ticket(201, 77, 987_654_321),
        )

    def test_large_pools_use_exact_integers(self) -> None:
        prize_pool = 2**70 + 1
        self.assertEqual(winning_ticket(255, 255, prize_pool), pow(255, 255, prize_pool) + 1)

    def test_invalid_arguments_raise(self) -> None:
        with self.assertRaises(ValueError):
            winning_ticket(5, 3, 0)
        with self.assertRaises(ValueError):
            winning_ticket(256, 3, 10)


class TicketWindowTests(unittest.TestCase):
    def test_windows_consume_the_hash_from_its_tail(self) -> None:
        block_hash = bytes(range(32))
        windows = ticket_windows(block_hash)
        self.assertEqual(len(windows), 8)
        self.assertEqual(windows[0], (31, 30))
        self.assertEqual(windows[1], (29, 28))
        self.assertEqual(windows[-1], (17, 16))

    def test_leading_bytes_are_ignored(self) -> None:
        tail = bytes(range(100, 116))
        self.assertEqual(
            ticket_windows(b"\x00" * 16 + tail),
            ticket_windows(b"\xff" * 16 + tail),
        )

    def test_hash_size_is_enforced(self) -> None:
        with self.assertRaises(ValueError):
            ticket_windows(b"\x01" * 31)


class LocateBetTests(unittest.TestCase):
    def test_reference_vector(self) -> None:
        bets = make_bets(("A", 50), ("B", 150), ("C", 1000))
        self.assertEqual(locate_bet(bets, 126).public_key, "B")

    def test_range_boundaries(self) -> None:
        bets = make_bets(("A", 50), ("B", 150), ("C", 1000))
        self.assertEqual(locate_bet(bets, 1).public_key, "A")
        self.assertEqual(locate_bet(bets, 50).public_key, "A")
        self.assertEqual(locate_bet(bets, 51).public_key, "B")
        self.assertEqual(locate_bet(bets, 150).public_key, "B")
        self.assertEqual(locate_bet(bets, 151).public_key, "C")
        self.assertEqual(locate_bet(bets, 1000).public_key, "C")

    def test_every_ticket_maps_to_its_owner(self) -> None:
        bets = make_bets(("A", 1), ("B", 4), ("C", 5), ("D", 12), ("E", 30))
        for ticket in range(1, 31):
            owner = locate_bet(bets, ticket)
            self.assertTrue(owner.first_ticket <= ticket <= owner.index)
            owners = [bet for bet in bets if bet.first_ticket <= ticket <= bet.index]
            self.assertEqual(owners, [owner])

    def test_single_bet_owns_everything(self) -> None:
        bets = make_bets(("solo", 7))
        for ticket in range(1, 8):
            self.assertEqual(locate_bet(bets, ticket).public_key, "solo")

    def test_out_of_range_ticket_raises(self) -> None:
        bets = make_bets(("A", 50))
        with self.assertRaises(ValueError):
            locate_bet(bets, 0)
        with self.assertRaises(ValueError):
            locate_bet(bets, 51)
        with self.assertRaises(ValueError):
            locate_bet([], 1)


class PrizeTests(unittest.TestCase):
    def test_percentages_halve_from_fifty(self) -> None:
        self.assertEqual(PRIZE_PERCENTAGES[0], 50)
        for higher, lower in zip(PRIZE_PERCENTAGES, PRIZE_PERCENTAGES[1:]):
            self.assertEqual(lower * 2, higher)
        self.assertEqual(OPERATOR_FEE_PERCENT, Fraction("0.390625"))

    def test_percentages_sum(self) -> None:
        self.assertEqual(total_percentage(), Fraction("99.609375"))

    def test_amounts_round_half_up(self) -> None:
        self.assertEqual(prize_amounts(1000), [500, 250, 125, 63, 31, 16, 8, 4])
        self.assertEqual(prize_amount(Fraction(1, 2), 1), 1)
        self.assertEqual(prize_amount(Fraction(1, 4), 1), 0)

    def test_amounts_never_exceed_pool(self) -> None:
        for prize_pool in (0, 1, 3, 255, 256, 10**18 + 7):
            self.assertLessEqual(sum(prize_amounts(prize_pool)), prize_pool + 8)

    def test_negative_pool_raises(self) -> None:
        with self.assertRaises(ValueError):
            prize_amount(Fraction(1, 2), -1)


class ComputeWinnersTests(unittest.TestCase):
    def setUp(self) -> None:
        self.bets = make_bets(("A", 50), ("B", 150), ("C", 1000))

    def test_reference_draw(self) -> None:
        # Tier 1 draws ticket 126; the remaining windows are (0, 0) -> ticket 2.
        block_hash = make_hash([(5, 3)])
        winners = compute_winners(block_hash, 1000, self.bets)

        self.assertEqual(len(winners), 8)
        self.assertEqual(winners[0].public_key, "B")
        self.assertEqual(winners[0].ticket, 126)
        self.assertEqual(winners[0].prizes, 500)
        for winner in winners[1:]:
            self.assertEqual(winner.public_key, "A")
            self.assertEqual(winner.ticket, 2)
        self.assertEqual([w.prizes for w in winners], prize_amounts(1000))
        self.assertTrue(all(w.prize_pool == 1000 for w in winners))

    def test_same_inputs_same_winners(self) -> None:
        block_hash = bytes.fromhex(
            "00000000000000000002a7c4c1e48d76c5a37902165a270156b7a8d72728a054"
        )
        first = compute_winners(block_hash, 1000, self.bets)
        second = compute_winners(block_hash, 1000, self.bets)
        self.assertEqual(
            [(w.public_key, w.ticket, w.prizes) for w in first],
            [(w.public_key, w.ticket, w.prizes) for w in second],
        )

    def test_no_bets_no_winners(self) -> None:
        self.assertEqual(compute_winners(make_hash([(5, 3)]), 0, []), [])


if __name__ == "__main__":
    unittest.main()
