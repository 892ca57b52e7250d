"""Engine that clears a round, draws its winners and hands them off."""

from __future__ import annotations

import logging
import queue
from typing import Optional

from sqlalchemy.orm import sessionmaker

from ..errors import PayoutHandoffError
from ..models import Bet, Winner
from ..models.utils import store_operation
from ..notifications import Notifier, NullNotifier, notify_winners
from .draw import HASH_SIZE, compute_winners
from .expiry import sweep_expired

logger = logging.getLogger(__name__)


class RaffleEngine:
    """Runs the draw for one target height.

    Each step uses its own transaction. Clearing the bets is the commit point
    of a round: once it is committed, a later failure does not bring the bets
    back and the frozen prize pool must be reconciled by hand.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        payouts: "queue.Queue[list[Winner]]",
        *,
        duration: int,
        notifier: Optional[Notifier] = None,
        payout_timeout: Optional[float] = None,
    ) -> None:
        """Create an engine bound to a SQLAlchemy session factory.

        Parameters
        ----------
        session_factory : sessionmaker
            Factory producing sessions for the lottery database.
        payouts : queue.Queue[list[Winner]]
            Queue consumed by the payout subsystem. It receives one batch per
            draw.
        duration : int
            Blocks between two draws, used for the prize retention window.
        notifier : Optional[Notifier], default: None
            Delivery channel for winner messages. Defaults to a no-op notifier.
        payout_timeout : Optional[float], default: None
            Seconds to wait for room in ``payouts``. ``None`` waits forever.
        """

        if duration <= 0:
            raise ValueError("duration must be a positive number of blocks")
        self._session_factory = session_factory
        self._payouts = payouts
        self._duration = duration
        self._notifier = notifier or NullNotifier()
        self._payout_timeout = payout_timeout

    def raffle(self, height: int, block_hash: bytes) -> list[Winner]:
        """Draw the winners of the running round using ``block_hash``.

        Returns the persisted winners, or an empty list when nobody bet.

        Raises
        ------
        StoreError
            If reading, clearing or saving fails.
        PayoutHandoffError
            If the payout queue did not accept the winners.
        ValueError
            If ``block_hash`` is not 32 bytes long. The round is left intact.
        """

        if len(block_hash) != HASH_SIZE:
            raise ValueError(
                f"block hash at height {height} must be {HASH_SIZE} bytes, got {len(block_hash)}"
            )

        with store_operation("clearing bets"), self._session_factory.begin() as session:
            bets, prize_pool = Bet.snapshot_and_reset(session)

        if not bets:
            logger.info(f"No bets for the lottery at height {height}")
            return []

        logger.info(f"Drawing {len(bets)} bets with a prize pool of {prize_pool} at height {height}")
        try:
            winners = compute_winners(block_hash, prize_pool, bets)
            with store_operation("saving winners"), self._session_factory.begin() as session:
                Winner.add(session, height, prize_pool, winners)
        except Exception:
            logger.critical(
                f"Lottery at height {height} failed after clearing {len(bets)} bets; "
                f"prize pool of {prize_pool} lost, manual reconciliation required"
            )
            raise

        self._hand_off(winners)

        try:
            with self._session_factory() as session:
                notify_winners(session, self._notifier, winners)
        except Exception:
            logger.exception(f"Notifying winners of height {height} failed")

        with store_operation("expiring prizes"), self._session_factory.begin() as session:
            sweep_expired(session, height, self._duration)

        logger.info(f"Lottery at height {height} finished with {len(winners)} winners")
        return winners

    def _hand_off(self, winners: list[Winner]) -> None:
        try:
            self._payouts.put(list(winners), timeout=self._payout_timeout)
        except queue.Full as e:
            raise PayoutHandoffError(
                f"payout queue is full, {len(winners)} winners were not handed off"
            ) from e


__all__ = ["RaffleEngine"]
