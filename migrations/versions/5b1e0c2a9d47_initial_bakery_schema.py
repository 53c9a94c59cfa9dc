"""initial bakery schema: catalog, inventory, carts and orders

Revision ID: 5b1e0c2a9d47
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '5b1e0c2a9d47'
down_revision = None
branch_labels = None
depends_on = None

BIGINT = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade():
    op.create_table(
        'user_account',
        sa.Column('id', BIGINT, primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('full_name', sa.String(100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'product',
        sa.Column('id', BIGINT, primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('sku', sa.String(50), nullable=True, unique=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('image_url', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'inventory',
        sa.Column('id', BIGINT, primary_key=True),
        sa.Column('product_id', BIGINT, sa.ForeignKey('product.id'), nullable=False, unique=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('reorder_point', sa.Integer(), nullable=False),
        sa.Column('reorder_quantity', sa.Integer(), nullable=False),
        sa.Column('location', sa.String(100), nullable=True),
        sa.Column('last_updated', sa.DateTime(), nullable=True),
        sa.CheckConstraint('quantity >= 0', name='ck_inventory_quantity_non_negative'),
    )
    op.create_table(
        'cart',
        sa.Column('id', BIGINT, primary_key=True),
        sa.Column('session_id', sa.String(64), nullable=True, unique=True),
        sa.Column('user_id', BIGINT, sa.ForeignKey('user_account.id'), nullable=True, unique=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        sa.CheckConstraint('(session_id IS NULL) <> (user_id IS NULL)', name='ck_cart_single_owner'),
    )
    op.create_index('ix_cart_expires_at', 'cart', ['expires_at'])
    op.create_table(
        'cart_item',
        sa.Column('id', BIGINT, primary_key=True),
        sa.Column('cart_id', BIGINT, sa.ForeignKey('cart.id'), nullable=False),
        sa.Column('product_id', BIGINT, sa.ForeignKey('product.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('saved_for_later', sa.Boolean(), nullable=False),
        sa.Column('added_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('cart_id', 'product_id', name='uq_cart_item_product'),
        sa.CheckConstraint('quantity > 0', name='ck_cart_item_quantity_positive'),
    )
    op.create_table(
        'order',
        sa.Column('id', BIGINT, primary_key=True),
        sa.Column('order_number', sa.String(32), nullable=False, unique=True),
        sa.Column('customer_id', BIGINT, sa.ForeignKey('user_account.id'), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('delivery_method', sa.String(20), nullable=False),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False),
        sa.Column('tax_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('shipping_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('discount_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('order_date', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_order_customer_id', 'order', ['customer_id'])
    op.create_index('ix_order_status_date', 'order', ['status', 'order_date'])
    op.create_table(
        'order_item',
        sa.Column('id', BIGINT, primary_key=True),
        sa.Column('order_id', BIGINT, sa.ForeignKey('order.id'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_id', BIGINT, sa.ForeignKey('product.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('stock_deducted', sa.Boolean(), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_order_item_quantity_positive'),
    )
    op.create_table(
        'order_status_log',
        sa.Column('id', BIGINT, primary_key=True),
        sa.Column('order_id', BIGINT, sa.ForeignKey('order.id'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('changed_by', sa.String(100), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=True),
    )


def downgrade():
    op.drop_table('order_status_log')
    op.drop_table('order_item')
    op.drop_index('ix_order_status_date', table_name='order')
    op.drop_index('ix_order_customer_id', table_name='order')
    op.drop_table('order')
    op.drop_table('cart_item')
    op.drop_index('ix_cart_expires_at', table_name='cart')
    op.drop_table('cart')
    op.drop_table('inventory')
    op.drop_table('product')
    op.drop_table('user_account')
