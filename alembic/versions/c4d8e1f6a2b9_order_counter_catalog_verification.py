"""order counter, catalog taxonomy, verification codes

Revision ID: c4d8e1f6a2b9
Revises: a1f3c9e2b7d4
Create Date: 2026-10-19 14:03:27.881045

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'c4d8e1f6a2b9'
down_revision: Union[str, Sequence[str], None] = 'a1f3c9e2b7d4'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    # seeded from existing orders on first use
    op.create_table(
        "order_counters",
        sa.Column("name", sa.String(), primary_key=True),
        sa.Column("value", sa.Integer(), nullable=False),
    )

    op.create_table(
        "catalog_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("catalog_items.id"), nullable=True),
        sa.Column("discount", sa.Float(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("type", "name", "parent_id", name="uq_catalog_items_type_name_parent"),
    )
    op.create_index("ix_catalog_items_type", "catalog_items", ["type"])
    op.create_index("ix_catalog_items_is_active", "catalog_items", ["is_active"])

    with op.batch_alter_table("products") as batch_op:
        batch_op.add_column(sa.Column("sale_id", sa.Integer(), nullable=True))
        batch_op.create_foreign_key("fk_products_sale_id", "catalog_items", ["sale_id"], ["id"])

    op.create_table(
        "verification_codes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("code", sa.String(length=6), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_verification_codes_email", "verification_codes", ["email"])
    op.create_index("ix_verification_codes_created_at", "verification_codes", ["created_at"])


def downgrade():
    op.drop_table("verification_codes")

    with op.batch_alter_table("products") as batch_op:
        batch_op.drop_constraint("fk_products_sale_id", type_="foreignkey")
        batch_op.drop_column("sale_id")

    op.drop_table("catalog_items")
    op.drop_table("order_counters")
