"""Database model for scheduled lottery heights."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, delete, func, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from .utils import store_operation


class LotteryHeight(Base):
    """A block height at which a draw is (or was) scheduled.

    The greatest stored height is the next target. Heights are only removed
    when the node was offline while the target block was mined, so the table
    never lists a draw that did not take place.
    """

    __tablename__ = "lotteries"

    height: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    """Target block height."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __init__(self, *, height: int, created_at: Optional[datetime] = None) -> None:
        self.height = height
        if created_at is not None:
            self.created_at = created_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<LotteryHeight(height={self.height})>"

    @classmethod
    def get_next_height(cls, session: Session) -> int:
        """Return the scheduled target height, or ``0`` when none is stored."""
        with store_operation("getting next height"):
            height = session.scalar(select(func.coalesce(func.max(cls.height), 0)))
        return int(height or 0)

    @classmethod
    def add_height(cls, session: Session, height: int) -> "LotteryHeight":
        """Store ``height`` as a scheduled target; existing rows are reused."""
        if height <= 0:
            raise ValueError("height must be a positive integer")
        with store_operation("adding height"):
            existing = session.get(cls, height)
            if existing is not None:
                return existing
            row = cls(height=height)
            session.add(row)
            session.flush()
        return row

    @classmethod
    def delete_height(cls, session: Session, height: int) -> int:
        """Remove ``height`` from the schedule and return the rows deleted."""
        with store_operation("deleting height"):
            result = session.execute(delete(cls).where(cls.height == height))
        return result.rowcount or 0

    @classmethod
    def list_heights(cls, session: Session) -> list[int]:
        """Return every stored height in ascending order."""
        with store_operation("listing heights"):
            return list(session.scalars(select(cls.height).order_by(cls.height.asc())).all())


__all__ = ["LotteryHeight"]
