"""widen order_number to carry the full order id

Revision ID: 0002_full_order_number
Revises: 0001_init
Create Date: 2024-11-20

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0002_full_order_number'
down_revision = '0001_init'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.alter_column(
        'orders',
        'order_number',
        existing_type=sa.String(30),
        type_=sa.String(48),
        existing_nullable=False
    )

    # Rebuild numbers of existing orders from the full id
    op.execute("""
        UPDATE orders
        SET order_number = 'ORD-' || TO_CHAR(created_at AT TIME ZONE 'UTC', 'YYYYMMDD')
            || '-' || UPPER(REPLACE(id::text, '-', ''))
    """)


def downgrade() -> None:
    op.execute("UPDATE orders SET order_number = LEFT(order_number, 30)")
    op.alter_column(
        'orders',
        'order_number',
        existing_type=sa.String(48),
        type_=sa.String(30),
        existing_nullable=False
    )
