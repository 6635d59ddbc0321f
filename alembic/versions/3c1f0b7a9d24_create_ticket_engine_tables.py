"""create ticket engine tables

Revision ID: 3c1f0b7a9d24
Revises:
Create Date: 2026-10-19 10:12:44.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0b7a9d24'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

payment_state = sa.Enum('pending', 'completed', 'failed', name='payment_state')


def upgrade():
    op.create_table(
        'events',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('host_id', sa.Text(), nullable=False),
        sa.Column('starts_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('length(title) > 0', name='chk_event_title_not_empty'),
    )
    op.create_index('ix_events_host_id', 'events', ['host_id'])

    op.create_table(
        'ticket_tiers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('sold', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('display_order', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.UniqueConstraint('event_id', 'name', name='uq_tier_event_name'),
        sa.CheckConstraint('price >= 0', name='chk_tier_price_nonneg'),
        sa.CheckConstraint('capacity > 0', name='chk_tier_capacity_pos'),
        sa.CheckConstraint('sold >= 0', name='chk_tier_sold_nonneg'),
        sa.CheckConstraint('sold <= capacity', name='chk_tier_no_oversell'),
    )
    op.create_index('ix_ticket_tiers_event_id', 'ticket_tiers', ['event_id'])

    op.create_table(
        'tickets',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('tier_id', sa.Uuid(), sa.ForeignKey('ticket_tiers.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('event_id', sa.Uuid(), sa.ForeignKey('events.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('buyer_id', sa.Text(), nullable=False),
        sa.Column('quantity_purchased', sa.Integer(), nullable=False),
        sa.Column('quantity_redeemed', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('payment_state', payment_state, nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('service_fee', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_paid', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('last_redeemed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint('quantity_purchased > 0', name='chk_ticket_qty_pos'),
        sa.CheckConstraint('quantity_redeemed >= 0', name='chk_ticket_redeemed_nonneg'),
        sa.CheckConstraint('quantity_redeemed <= quantity_purchased', name='chk_ticket_no_over_redeem'),
        sa.CheckConstraint('unit_price >= 0', name='chk_ticket_unit_price_nonneg'),
        sa.CheckConstraint('service_fee >= 0', name='chk_ticket_fee_nonneg'),
    )
    op.create_index('ix_tickets_tier_id', 'tickets', ['tier_id'])
    op.create_index('ix_tickets_event_id', 'tickets', ['event_id'])
    op.create_index('ix_tickets_buyer_created', 'tickets', ['buyer_id', 'created_at'])

    op.create_table(
        'ticket_scans',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('ticket_id', sa.Uuid(), sa.ForeignKey('tickets.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('scan_number', sa.Integer(), nullable=False),
        sa.Column('device_id', sa.Text(), nullable=True),
        sa.Column('scanned_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('ticket_id', 'scan_number', name='uq_ticket_scan_number'),
        sa.CheckConstraint('scan_number > 0', name='chk_scan_number_pos'),
    )
    op.create_index('ix_ticket_scans_ticket_id', 'ticket_scans', ['ticket_id'])


def downgrade():
    op.drop_table('ticket_scans')
    op.drop_table('tickets')
    op.drop_table('ticket_tiers')
    op.drop_table('events')
    payment_state.drop(op.get_bind(), checkfirst=True)
