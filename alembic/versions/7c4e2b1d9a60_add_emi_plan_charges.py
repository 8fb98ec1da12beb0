"""add emi plan charges

Revision ID: 7c4e2b1d9a60
Revises: 3a1f0c9e7b52
Create Date: 2026-10-19 15:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "7c4e2b1d9a60"
down_revision = "3a1f0c9e7b52"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "emi_plans",
        sa.Column("service_charge_percent", sa.Numeric(7, 4), nullable=False, server_default="0"),
    )
    op.add_column(
        "emi_plans",
        sa.Column("non_card_charge", sa.Numeric(14, 2), nullable=False, server_default="0"),
    )


def downgrade() -> None:
    with op.batch_alter_table("emi_plans") as batch_op:
        batch_op.drop_column("non_card_charge")
        batch_op.drop_column("service_charge_percent")
