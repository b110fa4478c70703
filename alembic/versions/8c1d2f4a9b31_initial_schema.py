"""initial schema

Revision ID: 8c1d2f4a9b31
Revises:
Create Date: 2026-10-19 09:12:44.381205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '8c1d2f4a9b31'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_FK = dict(ondelete='CASCADE', onupdate='CASCADE')

userrole = sa.Enum('ADMIN', 'DOCTOR', 'PATIENT', name='userrole')
prescriptionstatus = sa.Enum('DRAFT', 'ACTIVE', 'COMPLETED', name='prescriptionstatus')
reporttype = sa.Enum('LAB', 'IMAGING', 'PATHOLOGY', 'OTHER', name='reporttype')
notificationtype = sa.Enum('PRESCRIPTION', 'REPORT', 'VITALS', 'ACCOUNT', 'SYSTEM', name='notificationtype')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('role', userrole, nullable=False),
        sa.Column('provisioned', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'patients',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('gender', sa.String(length=20), nullable=True),
        sa.Column('blood_type', sa.String(length=5), nullable=True),
        sa.Column('emergency_contact', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['id'], ['users.id'], **USER_FK),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'doctors',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('specialization', sa.String(length=100), nullable=True),
        sa.Column('license_number', sa.String(length=100), nullable=True),
        sa.Column('verified', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['id'], ['users.id'], **USER_FK),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'prescriptions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('patient_id', sa.Uuid(), nullable=False),
        sa.Column('doctor_id', sa.Uuid(), nullable=False),
        sa.Column('medications', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('status', prescriptionstatus, nullable=False),
        sa.Column('ai_generated', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], **USER_FK),
        sa.ForeignKeyConstraint(['doctor_id'], ['users.id'], **USER_FK),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_prescriptions_patient', 'prescriptions', ['patient_id'])
    op.create_index('idx_prescriptions_doctor', 'prescriptions', ['doctor_id'])

    op.create_table(
        'medical_reports',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('patient_id', sa.Uuid(), nullable=False),
        sa.Column('doctor_id', sa.Uuid(), nullable=False),
        sa.Column('report_type', reporttype, nullable=False),
        sa.Column('file_url', sa.String(length=500), nullable=False),
        sa.Column('public_id', sa.String(length=255), nullable=False),
        sa.Column('file_format', sa.String(length=20), nullable=True),
        sa.Column('file_size', sa.Integer(), nullable=True),
        sa.Column('ai_analysis', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('confidence_score', sa.Float(), nullable=True),
        sa.Column('anomalies', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], **USER_FK),
        sa.ForeignKeyConstraint(['doctor_id'], ['users.id'], **USER_FK),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_medical_reports_patient', 'medical_reports', ['patient_id'])

    op.create_table(
        'vitals',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('patient_id', sa.Uuid(), nullable=False),
        sa.Column('recorded_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('heart_rate', sa.Integer(), nullable=True),
        sa.Column('blood_pressure_systolic', sa.Integer(), nullable=True),
        sa.Column('blood_pressure_diastolic', sa.Integer(), nullable=True),
        sa.Column('temperature', sa.Float(), nullable=True),
        sa.Column('oxygen_saturation', sa.Float(), nullable=True),
        sa.Column('respiratory_rate', sa.Integer(), nullable=True),
        sa.Column('weight', sa.Float(), nullable=True),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], **USER_FK),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_vitals_patient_recorded', 'vitals', ['patient_id', 'recorded_at'])

    op.create_table(
        'patient_records',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('patient_id', sa.Uuid(), nullable=False),
        sa.Column('doctor_id', sa.Uuid(), nullable=False),
        sa.Column('visit_date', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('diagnosis', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], **USER_FK),
        sa.ForeignKeyConstraint(['doctor_id'], ['users.id'], **USER_FK),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_patient_records_patient', 'patient_records', ['patient_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('type', notificationtype, nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('link', sa.String(length=500), nullable=True),
        sa.Column('read', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], **USER_FK),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_notifications_user', 'notifications', ['user_id'])
    op.create_index('idx_notifications_unread', 'notifications', ['user_id', 'read'])


def downgrade() -> None:
    op.drop_index('idx_notifications_unread', table_name='notifications')
    op.drop_index('idx_notifications_user', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('idx_patient_records_patient', table_name='patient_records')
    op.drop_table('patient_records')
    op.drop_index('idx_vitals_patient_recorded', table_name='vitals')
    op.drop_table('vitals')
    op.drop_index('idx_medical_reports_patient', table_name='medical_reports')
    op.drop_table('medical_reports')
    op.drop_index('idx_prescriptions_doctor', table_name='prescriptions')
    op.drop_index('idx_prescriptions_patient', table_name='prescriptions')
    op.drop_table('prescriptions')
    op.drop_table('doctors')
    op.drop_table('patients')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')

    # Drop the enum types
    for enum_type in (notificationtype, reporttype, prescriptionstatus, userrole):
        enum_type.drop(op.get_bind(), checkfirst=True)
