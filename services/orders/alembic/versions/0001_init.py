from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'categories',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('name', sa.String(50), nullable=False, unique=True)
    )
    op.create_table(
        'stores',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('category_id', sa.Uuid, sa.ForeignKey('categories.id'), nullable=True)
    )
    op.create_index('ix_stores_name', 'stores', ['name'])
    op.create_table(
        'products',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('store_id', sa.Uuid, sa.ForeignKey('stores.id'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False)
    )
    op.create_index('ix_products_store_id', 'products', ['store_id'])
    op.create_table(
        'orders',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('order_number', sa.String(30), nullable=False),
        sa.Column('store_id', sa.Uuid, nullable=False),
        sa.Column('customer_id', sa.Uuid, nullable=False),
        sa.Column('order_type', sa.String(20), nullable=False),
        sa.Column('delivery_address', sa.String(255), nullable=True),
        sa.Column('request_note', sa.String(200), nullable=True),
        sa.Column('total_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_by', sa.Uuid, nullable=True),
        sa.Column('version', sa.Integer, nullable=False),
        sa.CheckConstraint('total_price >= 0', name='ck_orders_total_price_non_negative'),
        sa.CheckConstraint(
            '(cancelled_at IS NULL) = (cancelled_by IS NULL)',
            name='ck_orders_cancellation_complete'
        )
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_store_id', 'orders', ['store_id'])
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])
    op.create_table(
        'order_lines',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('order_id', sa.Uuid, sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('line_no', sa.Integer, nullable=False),
        sa.Column('product_id', sa.Uuid, nullable=False),
        sa.Column('product_name', sa.String(100), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('line_total', sa.Numeric(12, 2), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_order_lines_quantity_positive')
    )
    op.create_index('ix_order_lines_order_id', 'order_lines', ['order_id'])

def downgrade():
    op.drop_table('order_lines')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('stores')
    op.drop_table('categories')
