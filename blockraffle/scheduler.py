"""Target height bookkeeping for the lottery."""

from __future__ import annotations

import logging

from sqlalchemy.orm import sessionmaker

from .errors import StoreError
from .models import LotteryHeight
from .models.utils import store_operation

logger = logging.getLogger(__name__)


class HeightScheduler:
    """Owns the block height at which the next draw takes place."""

    def __init__(self, session_factory: sessionmaker, duration: int) -> None:
        if duration <= 0:
            raise ValueError("duration must be a positive number of blocks")
        self._session_factory = session_factory
        self._duration = duration
        self._target = 0

    @property
    def target(self) -> int:
        """Next target height; ``0`` until :meth:`reconcile` has run."""
        return self._target

    @property
    def duration(self) -> int:
        return self._duration

    def reconcile(self, current_height: int) -> int:
        """Load the persisted target and repair it against ``current_height``.

        When no target is stored, or the stored one was mined while the
        service was down, a fresh target ``current_height + duration`` is
        persisted. A missed target is deleted so that no draw is reported for
        a block that was never raffled.

        Raises
        ------
        StoreError
            If the target cannot be read or written.
        """

        with store_operation("reconciling target height"), self._session_factory.begin() as session:
            target = LotteryHeight.get_next_height(session)

            if target == 0 or current_height > target:
                if target != 0:
                    logger.warning(
                        f"Missed lottery at height {target} (current height {current_height}), discarding it"
                    )
                    LotteryHeight.delete_height(session, target)

                target = current_height + self._duration
                LotteryHeight.add_height(session, target)

        self._target = target
        logger.info(f"Next block height target: {target}")
        return target

    def advance(self) -> int:
        """Move the target one duration ahead, whatever the last draw did.

        A failure to persist the new target is logged; the in-memory target
        still moves so the watcher never waits on a height twice.
        """

        self._target += self._duration
        try:
            with store_operation("adding height"), self._session_factory.begin() as session:
                LotteryHeight.add_height(session, self._target)
        except StoreError as e:
            logger.error(f"Could not persist target height {self._target}: {e}")

        logger.info(f"Next block height target: {self._target}")
        return self._target


__all__ = ["HeightScheduler"]
