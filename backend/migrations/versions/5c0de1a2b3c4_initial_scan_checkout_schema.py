"""initial scan checkout schema

Revision ID: 5c0de1a2b3c4
Revises:
Create Date: 2026-10-01 00:00:00.000000

Creates the single-shop schema:
- staff_profiles / access_tokens: staff identity and bearer token hashes
- products: catalog with current price
- shop_settings: single row, customer scan flag
- sales / sale_items: sales with public codes and price-snapshot items

public_code is unique among PENDING sales only (partial unique index), so a
code can be issued again once the earlier sale is PAID or CANCELLED.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c0de1a2b3c4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'staff_profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username', name='uq_staff_profiles_username'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_staff_profiles_username', 'staff_profiles', ['username'])

    op.create_table(
        'access_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('staff_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(['staff_id'], ['staff_profiles.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token_hash', name='uq_access_tokens_hash'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_access_tokens_staff_id', 'access_tokens', ['staff_id'])

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('price_cents >= 0', name='ck_products_price_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku', name='uq_products_sku'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_is_active', 'products', ['is_active'])

    op.create_table(
        'shop_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('enable_customer_scan', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('updated_by_staff_id', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['updated_by_staff_id'], ['staff_profiles.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.execute("INSERT INTO shop_settings (id, enable_customer_scan) VALUES (1, false)")

    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('public_code', sa.String(length=16), nullable=False),
        sa.Column('source', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('payment_method', sa.String(length=16), nullable=False, server_default='CASH'),
        sa.Column('momo_reference', sa.String(length=128), nullable=True),
        sa.Column('staff_id', sa.Integer(), nullable=True),
        sa.Column('note', sa.String(length=255), nullable=True),
        sa.Column('total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.CheckConstraint("status IN ('PENDING', 'PAID', 'CANCELLED')", name='ck_sales_status'),
        sa.CheckConstraint("source IN ('STAFF_MANUAL', 'CUSTOMER_SCAN')", name='ck_sales_source'),
        sa.CheckConstraint("payment_method IN ('CASH', 'MOMO')", name='ck_sales_payment_method'),
        sa.ForeignKeyConstraint(['staff_id'], ['staff_profiles.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sales_public_code', 'sales', ['public_code'])
    op.create_index('ix_sales_status_created', 'sales', ['status', 'created_at'])
    op.create_index('ix_sales_staff_id', 'sales', ['staff_id'])
    op.create_index(
        'uq_sales_pending_public_code',
        'sales',
        ['public_code'],
        unique=True,
        sqlite_where=sa.text("status = 'PENDING'"),
        postgresql_where=sa.text("status = 'PENDING'"),
    )

    op.create_table(
        'sale_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('line_total_cents', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('quantity > 0', name='ck_sale_items_quantity_positive'),
        sa.CheckConstraint('line_total_cents = quantity * unit_price_cents',
                           name='ck_sale_items_line_total'),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sale_items_sale_id', 'sale_items', ['sale_id'])
    op.create_index('ix_sale_items_product_id', 'sale_items', ['product_id'])


def downgrade():
    op.drop_index('ix_sale_items_product_id', table_name='sale_items')
    op.drop_index('ix_sale_items_sale_id', table_name='sale_items')
    op.drop_table('sale_items')

    op.drop_index('uq_sales_pending_public_code', table_name='sales')
    op.drop_index('ix_sales_staff_id', table_name='sales')
    op.drop_index('ix_sales_status_created', table_name='sales')
    op.drop_index('ix_sales_public_code', table_name='sales')
    op.drop_table('sales')

    op.drop_table('shop_settings')

    op.drop_index('ix_products_is_active', table_name='products')
    op.drop_table('products')

    op.drop_index('ix_access_tokens_staff_id', table_name='access_tokens')
    op.drop_table('access_tokens')

    op.drop_index('ix_staff_profiles_username', table_name='staff_profiles')
    op.drop_table('staff_profiles')
