"""create_booking_table

Revision ID: 0001
Revises:
Create Date: 2025-11-20

Schema:
- booking: one row per booking request, status driven by the resolver
- ix_booking_slot: conflict lookups by (resource_id, booking_date, booking_time)
- uq_booking_confirmed_slot: at most one CONFIRMED row per slot
- trg_booking_updated_at: refreshes updated_at on every UPDATE
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'booking',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('resource_id', sa.String(length=255), nullable=False),
        sa.Column('booking_date', sa.Date(), nullable=False),
        sa.Column('booking_time', sa.Time(), nullable=False),
        sa.Column('party_size', sa.Integer(), nullable=False),
        sa.Column(
            'status',
            sa.String(length=32),
            server_default=sa.text("'CREATED'"),
            nullable=False,
        ),
        sa.Column(
            'created_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.Column(
            'updated_at',
            sa.DateTime(timezone=True),
            server_default=sa.text('now()'),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('party_size > 0', name='ck_booking_party_size_positive'),
        sa.CheckConstraint(
            "status IN ('CREATED', 'CHECKING_AVAILABILITY', 'CONFIRMED', 'REJECTED')",
            name='ck_booking_status',
        ),
    )
    op.create_index(
        'ix_booking_slot', 'booking', ['resource_id', 'booking_date', 'booking_time']
    )
    op.create_index(op.f('ix_booking_status'), 'booking', ['status'])
    op.create_index(op.f('ix_booking_created_at'), 'booking', ['created_at'])
    op.create_index(
        'uq_booking_confirmed_slot',
        'booking',
        ['resource_id', 'booking_date', 'booking_time'],
        unique=True,
        postgresql_where=sa.text("status = 'CONFIRMED'"),
    )

    op.execute(
        """
        CREATE OR REPLACE FUNCTION booking_set_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = now();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
        """
    )
    op.execute(
        """
        CREATE TRIGGER trg_booking_updated_at
        BEFORE UPDATE ON booking
        FOR EACH ROW EXECUTE FUNCTION booking_set_updated_at();
        """
    )


def downgrade() -> None:
    op.execute('DROP TRIGGER IF EXISTS trg_booking_updated_at ON booking')
    op.execute('DROP FUNCTION IF EXISTS booking_set_updated_at()')
    op.drop_index('uq_booking_confirmed_slot', table_name='booking')
    op.drop_index(op.f('ix_booking_created_at'), table_name='booking')
    op.drop_index(op.f('ix_booking_status'), table_name='booking')
    op.drop_index('ix_booking_slot', table_name='booking')
    op.drop_table('booking')
