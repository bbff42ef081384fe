"""Add per-channel order numbers and counters.

Existing orders keep seq/number NULL; number them with `ordernum backfill`
before enabling order creation.

Revision ID: 002
Revises: 001
Create Date: 2026-02-03

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "order_counters",
        sa.Column("channel", sqlmodel.sql.sqltypes.AutoString(length=16), nullable=False),
        sa.Column("value", sa.Integer(), server_default="0", nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("channel"),
        sa.CheckConstraint("value >= 0", name="ck_order_counters_value_non_negative"),
    )

    op.add_column("orders", sa.Column("seq", sa.Integer(), nullable=True))
    op.add_column("orders", sa.Column("number", sqlmodel.sql.sqltypes.AutoString(length=32), nullable=True))
    op.create_unique_constraint("uq_orders_channel_seq", "orders", ["channel", "seq"])
    op.create_unique_constraint("uq_orders_number", "orders", ["number"])
    op.create_check_constraint(
        "ck_orders_seq_number_pair",
        "orders",
        "(seq IS NULL AND number IS NULL) OR (seq IS NOT NULL AND number IS NOT NULL)",
    )

    # Pre-seed the known channels
    op.execute(
        """
        INSERT INTO order_counters (channel, value, updated_at)
        VALUES ('AS', 0, now()), ('LAB', 0, now())
        ON CONFLICT (channel) DO NOTHING
        """
    )


def downgrade() -> None:
    op.drop_constraint("ck_orders_seq_number_pair", "orders", type_="check")
    op.drop_constraint("uq_orders_number", "orders", type_="unique")
    op.drop_constraint("uq_orders_channel_seq", "orders", type_="unique")
    op.drop_column("orders", "number")
    op.drop_column("orders", "seq")
    op.drop_table("order_counters")
