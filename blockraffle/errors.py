"""Exception hierarchy shared by the lottery components."""

from __future__ import annotations


class LotteryError(Exception):
    """Base class for all errors raised by :mod:`blockraffle`."""


class StoreError(LotteryError):
    """A read or write against the persistent store failed.

    The message carries the operation that failed (for example
    ``"listing bets"``); the original database error is chained as
    ``__cause__``.
    """


class UpstreamUnavailable(LotteryError):
    """The blockchain node could not be queried."""


class NotificationError(LotteryError):
    """A single notification could not be delivered."""


class PayoutHandoffError(LotteryError):
    """The payout queue refused a batch of winners.

    A batch is never dropped silently, so the watcher treats this as fatal.
    """


__all__ = [
    "LotteryError",
    "StoreError",
    "UpstreamUnavailable",
    "NotificationError",
    "PayoutHandoffError",
]
