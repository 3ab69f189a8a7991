"""initial_schema

Revision ID: a1f3c5e7b9d2
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1f3c5e7b9d2'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create catalog, transaction, sequence and key-value tables."""
    op.create_table(
        'suppliers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('contact', sa.String(length=50), nullable=True),
        sa.Column('gst_number', sa.String(length=50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )

    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Numeric(precision=20, scale=4), nullable=False),
        sa.Column('cost_price', sa.Numeric(precision=20, scale=4), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.Column('gst_rate', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('supplier_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.CheckConstraint('price >= 0', name='ck_product_price_non_negative'),
        sa.CheckConstraint('cost_price >= 0', name='ck_product_cost_price_non_negative'),
        sa.CheckConstraint('stock >= 0', name='ck_product_stock_non_negative'),
        sa.CheckConstraint('gst_rate >= 0 AND gst_rate <= 100', name='ck_product_gst_rate_range'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    op.create_index('ix_products_supplier', 'products', ['supplier_id'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('number', sa.String(length=50), nullable=False),
        sa.Column(
            'kind',
            sa.Enum('SALE', 'PURCHASE', 'RETURN', name='transactiontype'),
            nullable=False,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('customer_phone', sa.String(length=30), nullable=True),
        sa.Column(
            'payment_method',
            sa.Enum('CASH', 'CARD', 'UPI', 'OTHER', name='paymentmethod'),
            nullable=True,
        ),
        sa.Column('amount_received', sa.Numeric(precision=20, scale=4), nullable=True),
        sa.Column('change_due', sa.Numeric(precision=20, scale=4), nullable=False),
        sa.Column('supplier_id', sa.Uuid(), nullable=True),
        sa.Column('supplier_name', sa.String(length=255), nullable=True),
        sa.Column('supplier_bill_no', sa.String(length=50), nullable=True),
        sa.Column('original_id', sa.Uuid(), nullable=True),
        sa.Column('ledger_token', sa.String(length=32), nullable=True),
        sa.Column('item_count', sa.Integer(), nullable=False),
        sa.Column('total_quantity', sa.Integer(), nullable=False),
        sa.Column('sub_total', sa.Numeric(precision=20, scale=4), nullable=False),
        sa.Column('total_discount', sa.Numeric(precision=20, scale=4), nullable=False),
        sa.Column('total_tax', sa.Numeric(precision=20, scale=4), nullable=False),
        sa.Column('grand_total', sa.Numeric(precision=20, scale=4), nullable=False),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['original_id'], ['transactions.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('number'),
        sa.UniqueConstraint('ledger_token'),
    )
    op.create_index('ix_transactions_kind_created', 'transactions', ['kind', 'created_at'])
    op.create_index('ix_transactions_original', 'transactions', ['original_id'])

    op.create_table(
        'transaction_lines',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('transaction_id', sa.Uuid(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=20, scale=4), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('line_discount', sa.Numeric(precision=20, scale=4), nullable=False),
        sa.Column('tax_rate', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('tax_amount', sa.Numeric(precision=20, scale=4), nullable=False),
        sa.Column('subtotal', sa.Numeric(precision=20, scale=4), nullable=False),
        sa.Column('unit_cost', sa.Numeric(precision=20, scale=4), nullable=True),
        sa.Column('retail_rate', sa.Numeric(precision=20, scale=4), nullable=True),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_transaction_lines_txn', 'transaction_lines', ['transaction_id'])

    op.create_table(
        'sequence_counters',
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('next_value', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('name'),
    )

    op.create_table(
        'kv_entries',
        sa.Column('key', sa.String(length=255), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('key'),
    )


def downgrade() -> None:
    """Drop every table created by upgrade."""
    op.drop_table('kv_entries')
    op.drop_table('sequence_counters')
    op.drop_index('ix_transaction_lines_txn', table_name='transaction_lines')
    op.drop_table('transaction_lines')
    op.drop_index('ix_transactions_original', table_name='transactions')
    op.drop_index('ix_transactions_kind_created', table_name='transactions')
    op.drop_table('transactions')
    op.drop_index('ix_products_supplier', table_name='products')
    op.drop_table('products')
    op.drop_table('suppliers')
    if op.get_bind().dialect.name == 'postgresql':
        op.execute("DROP TYPE IF EXISTS paymentmethod")
        op.execute("DROP TYPE IF EXISTS transactiontype")
