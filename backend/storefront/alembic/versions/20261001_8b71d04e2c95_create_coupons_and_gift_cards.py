"""create coupons, gift cards and gift card transactions tables

Revision ID: 8b71d04e2c95
Revises: 3f2a9c1d7e40
Create Date: 2026-10-01 09:30:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "8b71d04e2c95"
down_revision = "3f2a9c1d7e40"
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:  # type: ignore[type-arg]
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "coupons",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("store_id", sa.String(length=36), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("discount_type", sa.String(length=20), nullable=False),
        sa.Column("discount_value", sa.Integer(), nullable=False),
        sa.Column("minimum_order_amount", sa.Integer(), nullable=False),
        sa.Column("max_uses", sa.Integer(), nullable=True),
        sa.Column("current_uses", sa.Integer(), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("discount_value > 0", name="ck_coupons_discount_value_positive"),
        sa.CheckConstraint("current_uses >= 0", name="ck_coupons_current_uses_non_negative"),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_coupons_store_id"), "coupons", ["store_id"])
    op.create_index(
        "uq_coupons_store_id_lower_code",
        "coupons",
        ["store_id", sa.text("lower(code)")],
        unique=True,
    )

    op.create_table(
        "gift_cards",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("store_id", sa.String(length=36), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("original_amount", sa.Integer(), nullable=False),
        sa.Column("current_balance", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("purchased_by_email", sa.String(length=255), nullable=True),
        sa.Column("purchased_by_name", sa.String(length=255), nullable=True),
        sa.Column("recipient_email", sa.String(length=255), nullable=False),
        sa.Column("recipient_name", sa.String(length=255), nullable=True),
        sa.Column("gift_message", sa.Text(), nullable=True),
        sa.Column("order_id", sa.String(length=36), nullable=True),
        sa.Column("payment_session_id", sa.String(length=255), nullable=True),
        sa.Column("email_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("current_balance >= 0", name="ck_gift_cards_balance_non_negative"),
        sa.CheckConstraint(
            "current_balance <= original_amount", name="ck_gift_cards_balance_within_original"
        ),
        sa.ForeignKeyConstraint(["store_id"], ["stores.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("payment_session_id"),
    )
    op.create_index(op.f("ix_gift_cards_store_id"), "gift_cards", ["store_id"])
    op.create_index(op.f("ix_gift_cards_code"), "gift_cards", ["code"], unique=True)

    op.create_table(
        "gift_card_transactions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("gift_card_id", sa.String(length=36), nullable=False),
        sa.Column("order_id", sa.String(length=36), nullable=True),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("balance_before", sa.Integer(), nullable=False),
        sa.Column("balance_after", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["gift_card_id"], ["gift_cards.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_gift_card_transactions_gift_card_id"),
        "gift_card_transactions",
        ["gift_card_id"],
    )


def downgrade() -> None:
    op.drop_index(
        op.f("ix_gift_card_transactions_gift_card_id"), table_name="gift_card_transactions"
    )
    op.drop_table("gift_card_transactions")
    op.drop_index(op.f("ix_gift_cards_code"), table_name="gift_cards")
    op.drop_index(op.f("ix_gift_cards_store_id"), table_name="gift_cards")
    op.drop_table("gift_cards")
    op.drop_index("uq_coupons_store_id_lower_code", table_name="coupons")
    op.drop_index(op.f("ix_coupons_store_id"), table_name="coupons")
    op.drop_table("coupons")
