"""initial inventory schema

Revision ID: 0001_initial_inventory
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the five tables of the relational backend:
- clients: signup records (email and CPF unique)
- products: keyed by the caller-visible code, description unique by key
- orders / order_items: purchase orders and their lines
- stock_movements: append-only quantity ledger
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_inventory'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'clients',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nickname', sa.String(length=64), nullable=False),
        sa.Column('password', sa.String(length=128), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('street', sa.String(length=255), nullable=True),
        sa.Column('number', sa.String(length=32), nullable=True),
        sa.Column('district', sa.String(length=128), nullable=True),
        sa.Column('municipality', sa.String(length=128), nullable=True),
        sa.Column('cpf', sa.String(length=11), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('accepts_terms', sa.Boolean(), nullable=False),
        sa.Column('verified', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_clients_email'),
        sa.UniqueConstraint('cpf', name='uq_clients_cpf'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'products',
        sa.Column('code', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('description_key', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('category', sa.String(length=16), nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=False),
        sa.Column('supplier', sa.String(length=255), nullable=False),
        sa.Column('last_delivery', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('code'),
        sa.UniqueConstraint('description_key', name='uq_products_description_key')
    )
    op.create_index('ix_products_supplier', 'products', ['supplier'], unique=False)

    # Plain rowid key: new ids are max(id)+1
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('delivery_time', sa.String(length=16), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('supplier', sa.String(length=255), nullable=False),
        sa.Column('invoice_received', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_orders_status', 'orders', ['status'], unique=False)

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_code', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.ForeignKeyConstraint(['product_code'], ['products.code']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'], unique=False)

    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_code', sa.Integer(), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.ForeignKeyConstraint(['product_code'], ['products.code']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_movements_product_date', 'stock_movements', ['product_code', 'date'], unique=False)
    op.create_index('ix_stock_movements_order_id', 'stock_movements', ['order_id'], unique=False)


def downgrade():
    op.drop_index('ix_stock_movements_order_id', table_name='stock_movements')
    op.drop_index('ix_movements_product_date', table_name='stock_movements')
    op.drop_table('stock_movements')
    op.drop_index('ix_order_items_order_id', table_name='order_items')
    op.drop_table('order_items')
    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_table('orders')
    op.drop_index('ix_products_supplier', table_name='products')
    op.drop_table('products')
    op.drop_table('clients')
