"""Best-effort delivery of draw results to participants."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol

import requests
from sqlalchemy.orm import Session

from .errors import NotificationError, StoreError
from .models import Notification, Winner

logger = logging.getLogger(__name__)

CONGRATULATIONS_MESSAGE = (
    "Congratulations! You won {prizes} sats in the lottery. "
    "Withdraw your prize before it expires."
)


class Notifier(Protocol):
    def notify(self, chat_id: int, message: str) -> None:
        ...


class NullNotifier:
    """Notifier used when no delivery channel is configured."""

    def notify(self, chat_id: int, message: str) -> None:
        logger.debug(f"Notifications disabled, skipping chat {chat_id}")


class TelegramNotifier:
    """Sends messages through the Telegram Bot API."""

    def __init__(
        self,
        bot_token: str,
        *,
        base_url: str = "https://api.telegram.org",
        timeout: int = 15,
        session: Optional[requests.Session] = None,
    ):
        if not bot_token:
            raise ValueError("A Telegram bot token is required")
        self._bot_token = bot_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def notify(self, chat_id: int, message: str) -> None:
        # The token is part of the URL; never log it.
        url = f"{self.base_url}/bot{self._bot_token}/sendMessage"
        try:
            r = self.session.request(
                method="POST",
                url=url,
                json={"chat_id": chat_id, "text": message},
                timeout=self.timeout,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            raise NotificationError(f"sending message to chat {chat_id} failed: {type(e).__name__}") from e


def aggregate_prizes(winners: Iterable[Winner]) -> dict[str, int]:
    """Sum the prizes of every participant, keeping first-win order."""
    totals: dict[str, int] = {}
    for winner in winners:
        totals[winner.public_key] = totals.get(winner.public_key, 0) + winner.prizes
    return totals


def notify_winners(session: Session, notifier: Notifier, winners: Iterable[Winner]) -> int:
    """Send one congratulations message per participant with a subscription.

    Participants without a subscription are skipped. Lookup and delivery
    failures are logged and never retried. Returns the number of messages
    delivered.
    """
    delivered = 0
    for public_key, prizes in aggregate_prizes(winners).items():
        try:
            chat_id = Notification.get_chat_id(session, public_key)
        except StoreError as e:
            logger.error(f"Could not look up notifications for {public_key}: {e}")
            continue
        if chat_id is None:
            continue

        try:
            notifier.notify(chat_id, CONGRATULATIONS_MESSAGE.format(prizes=prizes))
        except NotificationError as e:
            logger.error(f"Could not notify {public_key}: {e}")
            continue
        delivered += 1
    return delivered


__all__ = [
    "CONGRATULATIONS_MESSAGE",
    "Notifier",
    "NullNotifier",
    "TelegramNotifier",
    "aggregate_prizes",
    "notify_winners",
]
