"""coffees and price_history

Revision ID: 0001
Revises:
Create Date: 2026-10-18 12:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "coffees",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("roaster", sa.String(length=200), nullable=False),
        sa.Column("roast_level", sa.String(length=20), nullable=False),
        sa.Column("origin", sa.String(length=150), nullable=True),
        sa.Column("current_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("weight", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("tasting_notes", sa.JSON(), nullable=False),
        sa.Column("in_stock", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_coffees_id", "coffees", ["id"])
    op.create_index("ix_coffees_name", "coffees", ["name"])
    op.create_index("ix_coffees_roaster", "coffees", ["roaster"])
    op.create_index("ix_coffees_roast_level", "coffees", ["roast_level"])

    op.create_table(
        "price_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "coffee_id",
            sa.Integer(),
            sa.ForeignKey("coffees.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("effective_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_price_history_id", "price_history", ["id"])
    op.create_index("ix_price_history_coffee_id", "price_history", ["coffee_id"])
    op.create_index("ix_price_history_effective_date", "price_history", ["effective_date"])


def downgrade():
    op.drop_table("price_history")
    op.drop_table("coffees")
