"""Database model for the active bets of the current round."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    String,
    UniqueConstraint,
    delete,
    func,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from .id_type import AMOUNT_TYPE, ID_TYPE
from .utils import store_operation


@dataclass(frozen=True)
class BetEntry:
    """Detached, immutable copy of a bet taken at draw time.

    Attributes
    ----------
    public_key : str
        Identity of the participant who placed the bet.
    index : int
        Cumulative upper bound of the bet's ticket range.
    tickets : int
        Number of tickets (wager size) covered by the bet.
    """

    public_key: str
    index: int
    tickets: int

    @property
    def first_ticket(self) -> int:
        """Lowest ticket number owned by this bet."""
        return self.index - self.tickets + 1


class Bet(Base):
    """A wager in the running round.

    Bets are ordered by :attr:`index`. Each bet owns the ticket range
    ``(previous index, index]`` so the ordered list covers ``[1, prize pool]``
    without gaps or overlaps.
    """

    __tablename__ = "bets"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    public_key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    """Participant identity (node public key)."""

    tickets: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False)
    """Wager size; one ticket per satoshi."""

    index: Mapped[int] = mapped_column("idx", AMOUNT_TYPE, nullable=False)
    """Cumulative upper bound of the ticket range owned by this bet."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("idx", name="uq_bets_idx"),
        CheckConstraint("tickets > 0", name="tickets_positive"),
    )

    def __init__(
        self,
        *,
        public_key: str,
        tickets: int,
        index: int,
        created_at: Optional[datetime] = None,
    ) -> None:
        self.public_key = public_key
        self.tickets = tickets
        self.index = index
        if created_at is not None:
            self.created_at = created_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Bet(id={id}, public_key={key}, tickets={tickets}, index={index})>".format(
            id=self.id,
            key=self.public_key,
            tickets=self.tickets,
            index=self.index,
        )

    def to_entry(self) -> BetEntry:
        return BetEntry(public_key=self.public_key, index=self.index, tickets=self.tickets)

    @classmethod
    def place(cls, session: Session, public_key: str, tickets: int) -> "Bet":
        """Append a bet to the running round.

        The new bet's index is the current prize pool plus ``tickets``, so it
        takes the next contiguous ticket range.

        Raises
        ------
        ValueError
            If ``public_key`` is empty or ``tickets`` is not positive.
        StoreError
            If the bet could not be persisted.
        """
        if not public_key or not public_key.strip():
            raise ValueError("public_key must not be empty")
        if tickets <= 0:
            raise ValueError("tickets must be a positive integer")

        with store_operation("placing bet"):
            pool = cls.get_prize_pool(session)
            bet = cls(public_key=public_key.strip(), tickets=tickets, index=pool + tickets)
            session.add(bet)
            session.flush()
        return bet

    @classmethod
    def list_sorted(cls, session: Session) -> list["Bet"]:
        """Return the active bets ordered by ascending index."""
        with store_operation("listing bets"):
            return list(session.scalars(select(cls).order_by(cls.index.asc())).all())

    @classmethod
    def get_prize_pool(cls, session: Session) -> int:
        """Return the aggregate prize pool of the running round (0 when empty)."""
        with store_operation("getting prize pool"):
            total = session.scalar(select(func.coalesce(func.sum(cls.tickets), 0)))
        return int(total or 0)

    @classmethod
    def reset_all(cls, session: Session) -> int:
        """Delete every active bet and return how many were removed."""
        with store_operation("deleting bets"):
            result = session.execute(delete(cls))
        return result.rowcount or 0

    @classmethod
    def snapshot_and_reset(cls, session: Session) -> tuple[list[BetEntry], int]:
        """Clear the active bets and return exactly the rows that were removed.

        A single ``DELETE ... RETURNING`` both clears and copies the round, so
        a bet committed concurrently is either part of the snapshot or left
        for the next round. The prize pool is the greatest returned index,
        which keeps it consistent with the snapshot.
        """
        with store_operation("clearing bets"):
            rows = session.execute(
                delete(cls)
                .returning(cls.public_key, cls.index, cls.tickets)
                .execution_options(synchronize_session=False)
            ).all()

        bets = sorted(
            (BetEntry(public_key=key, index=index, tickets=tickets) for key, index, tickets in rows),
            key=lambda bet: bet.index,
        )
        if not bets:
            return [], 0
        return bets, bets[-1].index


__all__ = ["Bet", "BetEntry"]
