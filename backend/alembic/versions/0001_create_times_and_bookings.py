"""create times and bookings

Revision ID: 0001
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'times',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date', sa.String(length=20), nullable=False),
        sa.Column('time', sa.String(length=20), nullable=False),
        sa.Column('booked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('name', sa.String(length=200)),
        sa.Column('phone', sa.String(length=50)),
        sa.Column('note', sa.Text()),
        sa.Column('booked_at', sa.DateTime(timezone=True)),
        sa.UniqueConstraint('date', 'time', name='ux_times_date_time'),
    )
    op.create_table(
        'bookings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('time_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.String(length=20), nullable=False),
        sa.Column('time', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('phone', sa.String(length=50)),
        sa.Column('note', sa.Text()),
        sa.Column('booked_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_bookings_time_id', 'bookings', ['time_id'])


def downgrade() -> None:
    op.drop_index('ix_bookings_time_id', table_name='bookings')
    op.drop_table('bookings')
    op.drop_table('times')
