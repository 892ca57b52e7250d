from __future__ import annotations

import queue
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from sqlalchemy.orm import Session, sessionmaker

from .models import Bet, LotteryHeight, Winner
from .notifications import Notifier
from .raffle import CAPACITY_DIVISOR, RaffleEngine
from .scheduler import HeightScheduler
from .watcher import BlockWatcher

if TYPE_CHECKING:
    from .blockchain.api import ChainClient


@dataclass(frozen=True)
class LotteryInfo:
    """Public summary of the running round."""

    prize_pool: int
    capacity: int
    next_height: int

    def to_json(self) -> dict:
        return {
            "prize_pool": self.prize_pool,
            "capacity": self.capacity,
            "next_height": self.next_height,
        }


@dataclass
class Lottery:
    """The wired components of a running lottery."""

    scheduler: HeightScheduler
    engine: RaffleEngine
    watcher: BlockWatcher
    payouts: "queue.Queue[list[Winner]]"


def get_info(session: Session, client: "ChainClient") -> LotteryInfo:
    """Return the prize pool, capacity and next target height.

    Capacity is informational only: the remote balance of the node's
    channels divided by :data:`~blockraffle.raffle.CAPACITY_DIVISOR`. Nothing
    is written.

    Raises
    ------
    UpstreamUnavailable
        If the node balance cannot be fetched.
    StoreError
        If the prize pool or target height cannot be read.
    """

    remote_balance = client.remote_balance()
    prize_pool = Bet.get_prize_pool(session)
    next_height = LotteryHeight.get_next_height(session)

    return LotteryInfo(
        prize_pool=prize_pool,
        capacity=remote_balance // CAPACITY_DIVISOR,
        next_height=next_height,
    )


def start_lottery(
    session_factory: sessionmaker,
    client: "ChainClient",
    *,
    duration: int,
    notifier: Optional[Notifier] = None,
    payouts: "Optional[queue.Queue[list[Winner]]]" = None,
    payout_timeout: Optional[float] = None,
    background: bool = True,
) -> Lottery:
    """Reconcile the target height and start watching blocks.

    The workflow performs the following steps:

    1. Ask the node for its current height. Failure here is fatal and is
       raised to the caller as :class:`~blockraffle.errors.UpstreamUnavailable`.
    2. Reconcile the persisted target with that height.
    3. Wire the raffle engine and the block watcher on the node's block
       subscription and, when ``background`` is true, start the watcher
       thread. Otherwise the caller runs ``lottery.watcher.run()``.
    """

    current_height = client.get_current_height()

    scheduler = HeightScheduler(session_factory, duration)
    scheduler.reconcile(current_height)

    payouts = payouts if payouts is not None else queue.Queue()
    engine = RaffleEngine(
        session_factory,
        payouts,
        duration=duration,
        notifier=notifier,
        payout_timeout=payout_timeout,
    )
    watcher = BlockWatcher(client.subscribe_blocks(), scheduler, engine)
    if background:
        watcher.start()

    return Lottery(scheduler=scheduler, engine=engine, watcher=watcher, payouts=payouts)


__all__ = ["LotteryInfo", "Lottery", "get_info", "start_lottery"]
