"""Initial sales tables: accounts, activities, pending_sales_orders

Revision ID: 7c2e9a41d0b3
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '7c2e9a41d0b3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('reference_id', sa.String(length=64), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=False),
        sa.Column('contact_person', sa.String(length=255), nullable=True),
        sa.Column('contact_number', sa.String(length=64), nullable=True),
        sa.Column('email_address', sa.String(length=255), nullable=True),
        sa.Column('type_client', sa.String(length=80), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='Active'),
        sa.Column('date_created', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_accounts_reference_id', 'accounts', ['reference_id'])

    op.create_table('activities',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('reference_id', sa.String(length=64), nullable=False),
        sa.Column('manager', sa.String(length=64), nullable=True),
        sa.Column('tsm', sa.String(length=64), nullable=True),
        sa.Column('activity_status', sa.String(length=80), nullable=False),
        sa.Column('activity_remarks', sa.Text(), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('selfie_url', sa.Text(), nullable=True),
        sa.Column('date_created', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_activities_reference_id', 'activities', ['reference_id'])

    op.create_table('pending_sales_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('reference_id', sa.String(length=64), nullable=False),
        sa.Column('date_created', sa.String(length=64), nullable=True),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('contact_person', sa.String(length=255), nullable=True),
        sa.Column('so_number', sa.String(length=64), nullable=True),
        sa.Column('so_amount', sa.String(length=64), nullable=True),
        sa.Column('activity_status', sa.String(length=50), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_pending_sales_orders_reference_id', 'pending_sales_orders', ['reference_id'])


def downgrade():
    op.drop_index('ix_pending_sales_orders_reference_id', table_name='pending_sales_orders')
    op.drop_table('pending_sales_orders')
    op.drop_index('ix_activities_reference_id', table_name='activities')
    op.drop_table('activities')
    op.drop_index('ix_accounts_reference_id', table_name='accounts')
    op.drop_table('accounts')
