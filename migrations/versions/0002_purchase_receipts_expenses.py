"""purchase receipts and expenses

Revision ID: 0002_purchase_receipts
Revises: 0001_initial
Create Date: 2026-10-20 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_purchase_receipts"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


class GUID(sa.TypeDecorator):
    impl = sa.CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID

            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(sa.CHAR(36))


def upgrade() -> None:
    with op.batch_alter_table("tenant_settings") as batch_op:
        batch_op.add_column(sa.Column("po_counter", sa.Integer(), nullable=False, server_default="1"))
    with op.batch_alter_table("purchases") as batch_op:
        batch_op.add_column(sa.Column("received_at", sa.DateTime(), nullable=True))
        batch_op.create_unique_constraint("uq_purchases_tenant_po_number", ["tenant_id", "po_number"])
    op.create_table(
        "expenses",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("tenant_id", GUID(), sa.ForeignKey("tenants.id"), nullable=False, index=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("spent_on", sa.DateTime(), nullable=False),
        sa.Column("created_by", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("expenses")
    with op.batch_alter_table("purchases") as batch_op:
        batch_op.drop_constraint("uq_purchases_tenant_po_number", type_="unique")
        batch_op.drop_column("received_at")
    with op.batch_alter_table("tenant_settings") as batch_op:
        batch_op.drop_column("po_counter")
