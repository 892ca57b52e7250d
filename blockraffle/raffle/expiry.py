"""Ageing out unclaimed prizes and stale notification subscriptions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Notification, Winner

logger = logging.getLogger(__name__)

# Prizes stay claimable for this many lottery cycles.
PRIZE_RETENTION_CYCLES = 3


@dataclass(frozen=True)
class ExpiryReport:
    threshold_height: int
    expired_prizes: int
    expired_notifications: int


def expiry_threshold(height: int, duration: int) -> int:
    """Return the height below which prizes expire, never below zero."""
    return max(height - duration * PRIZE_RETENTION_CYCLES, 0)


def sweep_expired(
    session: Session,
    height: int,
    duration: int,
    *,
    now: Optional[datetime] = None,
) -> ExpiryReport:
    """Expire prizes older than the retention window and stale subscriptions.

    Safe to run every cycle; a second run with the same arguments changes
    nothing.
    """
    threshold = expiry_threshold(height, duration)
    expired_prizes = Winner.expire_prizes(session, threshold)
    logger.info(f"Expired prizes: {expired_prizes}")

    expired_notifications = Notification.expire_stale(session, now=now)
    if expired_notifications:
        logger.info(f"Expired notification subscriptions: {expired_notifications}")

    return ExpiryReport(
        threshold_height=threshold,
        expired_prizes=expired_prizes,
        expired_notifications=expired_notifications,
    )


__all__ = ["PRIZE_RETENTION_CYCLES", "ExpiryReport", "expiry_threshold", "sweep_expired"]
