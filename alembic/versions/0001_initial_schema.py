"""initial lottery schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "bets",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("public_key", sa.String(length=255), nullable=False),
        sa.Column("tickets", sa.BigInteger(), nullable=False),
        sa.Column("idx", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("tickets > 0", name=op.f("ck_bets_tickets_positive")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_bets")),
        sa.UniqueConstraint("idx", name="uq_bets_idx"),
    )
    op.create_index(op.f("ix_bets_public_key"), "bets", ["public_key"], unique=False)

    op.create_table(
        "winners",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("lottery_height", sa.Integer(), nullable=False),
        sa.Column("public_key", sa.String(length=255), nullable=False),
        sa.Column("ticket", sa.BigInteger(), nullable=False),
        sa.Column("prizes", sa.BigInteger(), nullable=False),
        sa.Column("prize_pool", sa.BigInteger(), nullable=False),
        sa.Column("expired", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_winners")),
    )
    op.create_index("ix_winners_lottery_height", "winners", ["lottery_height"], unique=False)
    op.create_index(
        "ix_winners_public_key_expired", "winners", ["public_key", "expired"], unique=False
    )

    op.create_table(
        "lotteries",
        sa.Column("height", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("height", name=op.f("pk_lotteries")),
    )

    op.create_table(
        "notifications",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("public_key", sa.String(length=255), nullable=False),
        sa.Column("chat_id", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_notifications")),
        sa.UniqueConstraint("public_key", name="uq_notifications_public_key"),
    )


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("lotteries")
    op.drop_index("ix_winners_public_key_expired", table_name="winners")
    op.drop_index("ix_winners_lottery_height", table_name="winners")
    op.drop_table("winners")
    op.drop_index(op.f("ix_bets_public_key"), table_name="bets")
    op.drop_table("bets")
