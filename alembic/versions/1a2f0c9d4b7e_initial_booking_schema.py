"""initial_booking_schema

Revision ID: 1a2f0c9d4b7e
Revises:
Create Date: 2026-10-18 10:12:41.503117

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '1a2f0c9d4b7e'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Needed for the uuid = in the exclusion constraint below
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    conn = op.get_bind()
    result = conn.execute(sa.text("SELECT 1 FROM pg_type WHERE typname = 'staffrole'"))
    if not result.scalar():
        op.execute("CREATE TYPE staffrole AS ENUM ('OWNER', 'MANAGER', 'STAFF')")

    # Create establishments table
    op.create_table('establishments',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('owner_user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('timezone', sa.String(length=50), nullable=False, server_default='America/Sao_Paulo'),
        sa.Column('slot_interval_minutes', sa.Integer(), nullable=False, server_default='15'),
        sa.Column('buffer_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_future_days', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('booking_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('auto_confirm_bookings', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('reschedule_min_hours', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reminder_hours_before', sa.Integer(), nullable=False, server_default='24'),
        sa.Column('cancellation_policy_text', sa.String(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('slot_interval_minutes > 0', name='ck_establishments_slot_interval_positive'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_establishments_slug'), 'establishments', ['slug'], unique=True)

    op.create_table('business_hours',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('establishment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('weekday', sa.Integer(), nullable=False),
        sa.Column('open_time', sa.Time(), nullable=True),
        sa.Column('close_time', sa.Time(), nullable=True),
        sa.Column('closed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.CheckConstraint('weekday BETWEEN 0 AND 6', name='ck_business_hours_weekday'),
        sa.ForeignKeyConstraint(['establishment_id'], ['establishments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('establishment_id', 'weekday', name='uq_business_hours_establishment_weekday')
    )
    op.create_index(op.f('ix_business_hours_establishment_id'), 'business_hours', ['establishment_id'], unique=False)

    # Create professionals tables
    op.create_table('professionals',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('establishment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('capacity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['establishment_id'], ['establishments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_professionals_establishment_id'), 'professionals', ['establishment_id'], unique=False)

    op.create_table('professional_hours',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('professional_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('weekday', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('closed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.CheckConstraint('weekday BETWEEN 0 AND 6', name='ck_professional_hours_weekday'),
        sa.ForeignKeyConstraint(['professional_id'], ['professionals.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('professional_id', 'weekday', name='uq_professional_hours_professional_weekday')
    )
    op.create_index(op.f('ix_professional_hours_professional_id'), 'professional_hours', ['professional_id'], unique=False)

    # Create services table
    op.create_table('services',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('establishment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('duration_minutes > 0', name='ck_services_duration_positive'),
        sa.ForeignKeyConstraint(['establishment_id'], ['establishments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_services_establishment_id'), 'services', ['establishment_id'], unique=False)
    op.create_index(op.f('ix_services_active'), 'services', ['active'], unique=False)

    op.create_table('professional_services',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('professional_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(['professional_id'], ['professionals.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('professional_id', 'service_id', name='uq_professional_services_pair')
    )
    op.create_index(op.f('ix_professional_services_professional_id'), 'professional_services', ['professional_id'], unique=False)
    op.create_index(op.f('ix_professional_services_service_id'), 'professional_services', ['service_id'], unique=False)

    # Create customers table
    op.create_table('customers',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('establishment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['establishment_id'], ['establishments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('establishment_id', 'phone', name='uq_customers_establishment_phone')
    )
    op.create_index(op.f('ix_customers_establishment_id'), 'customers', ['establishment_id'], unique=False)

    # Create appointments table
    op.create_table('appointments',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('establishment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('professional_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('customer_notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='booked'),
        sa.Column('reminder_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('canceled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('end_at > start_at', name='ck_appointments_end_after_start'),
        sa.ForeignKeyConstraint(['establishment_id'], ['establishments.id'], ),
        sa.ForeignKeyConstraint(['professional_id'], ['professionals.id'], ),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], ),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_appointments_establishment_id'), 'appointments', ['establishment_id'], unique=False)
    op.create_index(op.f('ix_appointments_professional_id'), 'appointments', ['professional_id'], unique=False)
    op.create_index(op.f('ix_appointments_start_at'), 'appointments', ['start_at'], unique=False)
    op.create_index(op.f('ix_appointments_status'), 'appointments', ['status'], unique=False)

    # Two active appointments of the same professional may never overlap.
    # Raises IntegrityError if a writer slips past the row locks.
    op.execute("""
        ALTER TABLE appointments
        ADD CONSTRAINT ex_appointments_professional_no_overlap
        EXCLUDE USING gist (
            professional_id WITH =,
            tstzrange(start_at, end_at, '[)') WITH &&
        )
        WHERE (status IN ('booked', 'confirmed'))
    """)

    op.create_table('appointment_events',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('appointment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('event_type', sa.String(length=30), nullable=False),
        sa.Column('actor_type', sa.String(length=20), nullable=False, server_default='system'),
        sa.Column('actor_user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('from_payload', sa.JSON(), nullable=True),
        sa.Column('to_payload', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['appointment_id'], ['appointments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_appointment_events_appointment_id'), 'appointment_events', ['appointment_id'], unique=False)

    op.create_table('appointment_manage_tokens',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('appointment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['appointment_id'], ['appointments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_appointment_manage_tokens_token_hash'), 'appointment_manage_tokens', ['token_hash'], unique=True)
    op.create_index(op.f('ix_appointment_manage_tokens_appointment_id'), 'appointment_manage_tokens', ['appointment_id'], unique=False)

    # Create time block tables
    op.create_table('time_blocks',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('establishment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('professional_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('end_at > start_at', name='ck_time_blocks_end_after_start'),
        sa.ForeignKeyConstraint(['establishment_id'], ['establishments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['professional_id'], ['professionals.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_time_blocks_establishment_id'), 'time_blocks', ['establishment_id'], unique=False)
    op.create_index(op.f('ix_time_blocks_professional_id'), 'time_blocks', ['professional_id'], unique=False)

    op.create_table('recurring_time_blocks',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('establishment_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('professional_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('weekday', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('weekday BETWEEN 0 AND 6', name='ck_recurring_time_blocks_weekday'),
        sa.ForeignKeyConstraint(['establishment_id'], ['establishments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['professional_id'], ['professionals.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_recurring_time_blocks_establishment_id'), 'recurring_time_blocks', ['establishment_id'], unique=False)
    op.create_index(op.f('ix_recurring_time_blocks_professional_id'), 'recurring_time_blocks', ['professional_id'], unique=False)

    # Create users table
    op.create_table('users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('establishment_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('professional_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('role', postgresql.ENUM('OWNER', 'MANAGER', 'STAFF', name='staffrole', create_type=False), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['establishment_id'], ['establishments.id'], ),
        sa.ForeignKeyConstraint(['professional_id'], ['professionals.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)


def downgrade() -> None:
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
    op.drop_table('recurring_time_blocks')
    op.drop_table('time_blocks')
    op.drop_table('appointment_manage_tokens')
    op.drop_table('appointment_events')
    op.drop_table('appointments')
    op.drop_table('customers')
    op.drop_table('professional_services')
    op.drop_table('services')
    op.drop_table('professional_hours')
    op.drop_table('professionals')
    op.drop_table('business_hours')
    op.drop_table('establishments')
    op.execute("DROP TYPE IF EXISTS staffrole")
