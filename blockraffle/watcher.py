"""Single consumer of the block stream that triggers the draws."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional, Protocol

from .blockchain.events import BlockEvent
from .errors import PayoutHandoffError
from .scheduler import HeightScheduler

logger = logging.getLogger(__name__)


class Raffle(Protocol):
    def raffle(self, height: int, block_hash: bytes) -> object:
        ...


class BlockWatcher:
    """Fires the raffle when the block at the target height arrives.

    Events are handled one at a time and every draw runs to completion before
    the next event is read, which gives exactly one draw per target height.
    """

    def __init__(
        self,
        events: Iterable[BlockEvent],
        scheduler: HeightScheduler,
        engine: Raffle,
    ) -> None:
        self._events = events
        self._scheduler = scheduler
        self._engine = engine
        self._stopping = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.error: Optional[BaseException] = None

    def handle(self, event: BlockEvent) -> bool:
        """Process one block event; return ``True`` when it triggered a draw.

        Raffle failures are logged and do not propagate, except for a refused
        payout hand-off. The target advances in every case.
        """

        if event.height != self._scheduler.target:
            logger.debug(f"Ignoring block {event.height}, waiting for {self._scheduler.target}")
            return False

        try:
            self._engine.raffle(event.height, event.canonical_hash())
        except PayoutHandoffError as e:
            logger.critical(f"Lottery at height {event.height}: {e}")
            raise
        except Exception:
            logger.exception(f"Lottery at height {event.height} failed")
        finally:
            self._scheduler.advance()
        return True

    def run(self) -> None:
        """Consume events in the calling thread until the stream ends or :meth:`stop`."""
        for event in self._events:
            if self._stopping.is_set():
                break
            self.handle(event)
            if self._stopping.is_set():
                break

    def start(self) -> threading.Thread:
        """Run :meth:`run` in a background daemon thread."""
        if self._thread is not None:
            raise RuntimeError("BlockWatcher already started")
        self._thread = threading.Thread(
            target=self._run_in_thread, name="block-watcher", daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        """Ask the loop to exit after the event being handled."""
        self._stopping.set()

    def is_alive(self) -> bool:
        """Whether the background thread is still consuming events."""
        return self._thread is not None and self._thread.is_alive()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _run_in_thread(self) -> None:
        try:
            self.run()
        except Exception as e:
            self.error = e
            logger.critical(f"Block watcher stopped: {e}")


__all__ = ["BlockWatcher"]
