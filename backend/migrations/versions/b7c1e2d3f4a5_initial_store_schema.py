"""initial store schema

Revision ID: b7c1e2d3f4a5
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the five collections:
- suppliers
- products: unique lower(product_number), stock_quantity >= 0
- product_images: cascade-deleted with their product
- customers: unique phone_number
- sales: append-only ledger; customer_id/product_id are weak references
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7c1e2d3f4a5'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'suppliers',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('contact_person', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_suppliers_created_at', 'suppliers', ['created_at'])

    op.create_table(
        'products',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('product_number', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('supplier_id', sa.String(length=32), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('stock_quantity >= 0', name='ck_products_stock_non_negative'),
        sa.CheckConstraint('price >= 0', name='ck_products_price_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_products_created_at', 'products', ['created_at'])
    op.create_index('ix_products_supplier_id', 'products', ['supplier_id'])
    op.create_index(
        'uq_products_product_number_lower',
        'products',
        [sa.text('lower(product_number)')],
        unique=True,
    )

    op.create_table(
        'product_images',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('product_id', sa.String(length=32), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_product_images_product_id', 'product_images', ['product_id'])

    op.create_table(
        'customers',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('phone_number', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('phone_number', name='uq_customers_phone_number'),
    )
    op.create_index('ix_customers_full_name', 'customers', ['full_name'])

    op.create_table(
        'sales',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('customer_id', sa.String(length=32), nullable=False),
        sa.Column('product_id', sa.String(length=32), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('sold_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('commission', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('sale_date', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_sales_quantity_positive'),
        sa.CheckConstraint('sold_price >= 0', name='ck_sales_sold_price_non_negative'),
        sa.CheckConstraint('commission >= 0', name='ck_sales_commission_non_negative'),
        sa.CheckConstraint('commission <= total_amount', name='ck_sales_commission_within_total'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sales_customer_id', 'sales', ['customer_id'])
    op.create_index('ix_sales_product_id', 'sales', ['product_id'])
    op.create_index('ix_sales_sale_date', 'sales', ['sale_date'])
    op.create_index('ix_sales_customer_sale_date', 'sales', ['customer_id', 'sale_date'])


def downgrade():
    op.drop_table('sales')
    op.drop_table('customers')
    op.drop_table('product_images')
    op.drop_table('products')
    op.drop_table('suppliers')
