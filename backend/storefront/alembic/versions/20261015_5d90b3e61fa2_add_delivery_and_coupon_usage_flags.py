"""add gift card send_email and order coupon_usage_recorded columns

Revision ID: 5d90b3e61fa2
Revises: c4e8f1a27d63
Create Date: 2026-10-15 09:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "5d90b3e61fa2"
down_revision = "c4e8f1a27d63"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "gift_cards",
        sa.Column("send_email", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.add_column(
        "orders",
        sa.Column(
            "coupon_usage_recorded", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
    )


def downgrade() -> None:
    op.drop_column("orders", "coupon_usage_recorded")
    op.drop_column("gift_cards", "send_email")
