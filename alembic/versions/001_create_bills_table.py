"""Create bills table

Revision ID: 001_bills
Revises:
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001_bills'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create the bills table with the recurring-bill de-duplication constraint"""

    op.create_table(
        'bills',
        sa.Column('bill_id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('tenant_user_id', sa.Integer, nullable=False),
        sa.Column('bill_number', sa.String(50), nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('total_amount', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('penalty_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('status', sa.String(20), server_default='draft', nullable=False,
                  comment='draft, master, issued, overdue, partially_paid, paid, cancelled'),
        sa.Column('is_recurring', sa.Boolean, server_default=sa.false(), nullable=False),
        sa.Column('billing_cycle', sa.String(20), nullable=True,
                  comment='WEEKLY, MONTHLY, EVERY_2_MONTHS, HALF_A_YEAR, YEARLY'),
        sa.Column('bills_cycled', sa.Integer, server_default='0', nullable=False,
                  comment='Concrete bills generated from this template'),
        sa.Column('billing_period_start', sa.Date, nullable=True),
        sa.Column('billing_period_end', sa.Date, nullable=True),
        sa.Column('due_date', sa.Date, nullable=True),
        sa.Column('created_by', sa.Integer, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('bill_number', name='uq_bills_bill_number'),
        sa.UniqueConstraint(
            'tenant_user_id', 'description', 'billing_period_start',
            name='uq_bills_tenant_description_period'
        ),
    )

    op.create_index('ix_bills_tenant_user_id', 'bills', ['tenant_user_id'])
    op.create_index('ix_bills_status_due_date', 'bills', ['status', 'due_date'])


def downgrade():
    """Drop the bills table"""
    op.drop_index('ix_bills_status_due_date', table_name='bills')
    op.drop_index('ix_bills_tenant_user_id', table_name='bills')
    op.drop_table('bills')
