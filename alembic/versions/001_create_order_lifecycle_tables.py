"""Create order lifecycle tables

Revision ID: 001_order_lifecycle
Revises:
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers
revision = '001_order_lifecycle'
down_revision = None
branch_labels = None
depends_on = None

JSON_TYPE = sa.JSON().with_variant(JSONB(), "postgresql")
SEQUENCE_ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade():
    """Create orders, history, inventory, notification and settings tables"""

    # ====================
    # ORDERS
    # ====================
    op.create_table(
        'orders',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('order_number', sa.String(30), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=False),
        sa.Column('customer_name', sa.String(200), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('shipping_address', JSON_TYPE, nullable=True),
        sa.Column('status', sa.String(50), nullable=False,
                  comment='Pending, Packed, Shipped, Delivered, Cancelled, Exchanged'),
        sa.Column('delivery_status', sa.String(50), nullable=True,
                  comment='Awaiting Dispatch, Out for Delivery, Delivered, Failed Delivery'),
        sa.Column('payment_method', sa.String(50), nullable=True),
        sa.Column('payment_status', sa.String(50), nullable=False),
        sa.Column('shipping_cost', sa.Numeric(12, 2), nullable=True),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('tracking_number', sa.String(100), nullable=True),
        sa.Column('carrier', sa.String(100), nullable=True),
        sa.Column('estimated_delivery', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_order_status_created', 'orders', ['status', 'created_at'])
    op.create_index('ix_order_customer_created', 'orders', ['customer_id', 'created_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('order_id', sa.Uuid(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('product_sku', sa.String(50), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('location_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'order_status_history',
        sa.Column('id', SEQUENCE_ID, primary_key=True, autoincrement=True),
        sa.Column('order_id', sa.Uuid(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('action', sa.String(50), nullable=True),
        sa.Column('from_status', sa.String(50), nullable=True),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('delivery_status', sa.String(50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_order_status_history_order', 'order_status_history', ['order_id', 'created_at'])

    # ====================
    # INVENTORY
    # ====================
    op.create_table(
        'warehouse_locations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False, unique=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'product_inventory',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('location_id', sa.Uuid(), sa.ForeignKey('warehouse_locations.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('low_stock_threshold', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('product_id', 'location_id', name='uq_product_inventory_location'),
        sa.CheckConstraint('quantity >= 0', name='chk_product_inventory_quantity'),
    )
    op.create_index('ix_product_inventory_product_id', 'product_inventory', ['product_id'])
    op.create_index('ix_product_inventory_location_id', 'product_inventory', ['location_id'])

    op.create_table(
        'inventory_transactions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('location_id', sa.Uuid(), sa.ForeignKey('warehouse_locations.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(20), nullable=False, comment='SALE, RELEASE, ADJUSTMENT'),
        sa.Column('reference_id', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            'reference_id', 'product_id', 'location_id', 'type',
            name='uq_inventory_transaction_reference',
        ),
    )
    op.create_index(
        'ix_inventory_transactions_product_created',
        'inventory_transactions',
        ['product_id', 'created_at'],
    )

    # ====================
    # NOTIFICATIONS & SETTINGS
    # ====================
    op.create_table(
        'notification_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('order_id', sa.Uuid(), nullable=True),
        sa.Column('template', sa.String(50), nullable=False),
        sa.Column('recipient', sa.String(255), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_notification_logs_order', 'notification_logs', ['order_id', 'created_at'])

    op.create_table(
        'store_settings',
        sa.Column('key', sa.String(100), primary_key=True),
        sa.Column('value', JSON_TYPE, nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )


def downgrade():
    op.drop_table('store_settings')
    op.drop_index('ix_notification_logs_order', table_name='notification_logs')
    op.drop_table('notification_logs')
    op.drop_index('ix_inventory_transactions_product_created', table_name='inventory_transactions')
    op.drop_table('inventory_transactions')
    op.drop_index('ix_product_inventory_location_id', table_name='product_inventory')
    op.drop_index('ix_product_inventory_product_id', table_name='product_inventory')
    op.drop_table('product_inventory')
    op.drop_table('warehouse_locations')
    op.drop_index('ix_order_status_history_order', table_name='order_status_history')
    op.drop_table('order_status_history')
    op.drop_index('ix_order_items_order_id', table_name='order_items')
    op.drop_table('order_items')
    op.drop_index('ix_order_customer_created', table_name='orders')
    op.drop_index('ix_order_status_created', table_name='orders')
    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_index('ix_orders_order_number', table_name='orders')
    op.drop_table('orders')
