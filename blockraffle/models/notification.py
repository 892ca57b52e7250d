"""Opt-in notification subscriptions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import BigInteger, DateTime, String, UniqueConstraint, delete, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from blockraffle.db.utils import as_utc

from .base import Base
from .id_type import ID_TYPE
from .utils import store_operation

DEFAULT_TTL = timedelta(days=30)


class Notification(Base):
    """Links a participant to the Telegram chat that receives their results."""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    public_key: Mapped[str] = mapped_column(String(255), nullable=False)
    chat_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("public_key", name="uq_notifications_public_key"),
    )

    def __init__(
        self,
        *,
        public_key: str,
        chat_id: int,
        expires_at: datetime,
        created_at: Optional[datetime] = None,
    ) -> None:
        self.public_key = public_key
        self.chat_id = chat_id
        self.expires_at = expires_at
        if created_at is not None:
            self.created_at = created_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Notification(public_key={self.public_key}, chat_id={self.chat_id})>"

    @classmethod
    def subscribe(
        cls,
        session: Session,
        public_key: str,
        chat_id: int,
        *,
        ttl: timedelta = DEFAULT_TTL,
        now: Optional[datetime] = None,
    ) -> "Notification":
        """Create or refresh the subscription of ``public_key``."""
        if not public_key or not public_key.strip():
            raise ValueError("public_key must not be empty")
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)
        with store_operation("subscribing to notifications"):
            row = session.scalar(select(cls).where(cls.public_key == public_key))
            if row is None:
                row = cls(public_key=public_key, chat_id=chat_id, expires_at=now + ttl)
                session.add(row)
            else:
                row.chat_id = chat_id
                row.expires_at = now + ttl
            session.flush()
        return row

    @classmethod
    def get_chat_id(
        cls, session: Session, public_key: str, *, now: Optional[datetime] = None
    ) -> Optional[int]:
        """Return the chat of an active subscription, or ``None`` if there is none."""
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)
        with store_operation("getting telegram chat ID"):
            row = session.scalar(select(cls).where(cls.public_key == public_key))
        if row is None or as_utc(row.expires_at) <= now:
            return None
        return row.chat_id

    @classmethod
    def expire_stale(cls, session: Session, *, now: Optional[datetime] = None) -> int:
        """Delete subscriptions whose lifetime has ended and return the count."""
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)
        with store_operation("expiring notifications"):
            result = session.execute(
                delete(cls)
                .where(cls.expires_at <= now)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount or 0


__all__ = ["Notification", "DEFAULT_TTL"]
