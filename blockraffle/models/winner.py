"""Database model for raffle winners."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import (
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    select,
    text,
    update,
)
from sqlalchemy.orm import Mapped, Session, mapped_column

from blockraffle.db.utils import dt_iso

from .base import Base
from .id_type import AMOUNT_TYPE, ID_TYPE
from .utils import store_operation


class Winner(Base):
    """One of the eight prize tiers awarded by a draw.

    A participant may hold several rows for the same draw when the block hash
    selects one of their tickets for more than one tier.
    """

    __tablename__ = "winners"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    lottery_height: Mapped[int] = mapped_column(Integer, nullable=False)
    """Block height whose hash produced this winner."""

    public_key: Mapped[str] = mapped_column(String(255), nullable=False)
    """Participant identity copied from the winning bet."""

    ticket: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False)
    """Winning ticket, in ``[1, prize_pool]``."""

    prizes: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False)
    """Amount awarded for this tier."""

    prize_pool: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False, default=0)
    """Prize pool frozen at the moment the round was cleared."""

    expired: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    """Set once the prize outlived the retention window without being paid."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_winners_lottery_height", "lottery_height"),
        Index("ix_winners_public_key_expired", "public_key", "expired"),
    )

    def __init__(
        self,
        *,
        public_key: str,
        ticket: int,
        prizes: int,
        lottery_height: Optional[int] = None,
        prize_pool: Optional[int] = None,
        expired: bool = False,
        created_at: Optional[datetime] = None,
    ) -> None:
        self.public_key = public_key
        self.ticket = ticket
        self.prizes = prizes
        if lottery_height is not None:
            self.lottery_height = lottery_height
        if prize_pool is not None:
            self.prize_pool = prize_pool
        self.expired = expired
        if created_at is not None:
            self.created_at = created_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Winner(id={id}, height={height}, public_key={key}, ticket={ticket}, prizes={prizes})>".format(
            id=self.id,
            height=self.lottery_height,
            key=self.public_key,
            ticket=self.ticket,
            prizes=self.prizes,
        )

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "lottery_height": self.lottery_height,
            "public_key": self.public_key,
            "ticket": self.ticket,
            "prizes": self.prizes,
            "prize_pool": self.prize_pool,
            "expired": self.expired,
            "created_at": dt_iso(self.created_at),
        }

    @classmethod
    def add(
        cls,
        session: Session,
        height: int,
        prize_pool: int,
        winners: Sequence["Winner"],
    ) -> list["Winner"]:
        """Persist ``winners`` as the outcome of the draw at ``height``."""
        with store_operation("saving winners"):
            for winner in winners:
                winner.lottery_height = height
                winner.prize_pool = prize_pool
            session.add_all(winners)
            session.flush()
        return list(winners)

    @classmethod
    def expire_prizes(cls, session: Session, older_than_height: int) -> int:
        """Mark unexpired prizes drawn below ``older_than_height`` as expired.

        Returns the number of rows updated; running it again is a no-op.
        """
        if older_than_height <= 0:
            return 0
        with store_operation("expiring prizes"):
            result = session.execute(
                update(cls)
                .where(cls.lottery_height < older_than_height, cls.expired.is_(False))
                .values(expired=True)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount or 0

    @classmethod
    def list_for_height(cls, session: Session, height: int) -> list["Winner"]:
        """Return the winners of the draw at ``height`` in tier order."""
        with store_operation("listing winners"):
            stmt = (
                select(cls)
                .where(cls.lottery_height == height)
                .order_by(cls.id.asc())
            )
            return list(session.scalars(stmt).all())

    @classmethod
    def list_for_participant(
        cls, session: Session, public_key: str, *, include_expired: bool = False
    ) -> list["Winner"]:
        """Return the prizes awarded to ``public_key``, newest draw first."""
        with store_operation("listing winners"):
            stmt = select(cls).where(cls.public_key == public_key)
            if not include_expired:
                stmt = stmt.where(cls.expired.is_(False))
            stmt = stmt.order_by(cls.lottery_height.desc(), cls.id.asc())
            return list(session.scalars(stmt).all())


__all__ = ["Winner"]
