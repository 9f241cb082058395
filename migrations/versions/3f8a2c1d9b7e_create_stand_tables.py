"""create stand tables

Revision ID: 3f8a2c1d9b7e
Revises:
Create Date: 2026-09-28 10:12:44.318205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = '3f8a2c1d9b7e'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Enum columns store member names, matching SQLModel's default mapping
CONFIGURATION_STATUS = sa.Enum('DRAFT', 'ACTIVE', 'ARCHIVED', name='configurationstatus')
BOOTH_TYPE = sa.Enum('SEF_BUILT', 'PARTNER_BUILT', name='boothtype')
STAND_STATUS = sa.Enum(
    'PENDING_PARTNER_REVIEW', 'PENDING_ADMIN_REVIEW', 'REVISION_NEEDED',
    'APPROVED', 'COMPLETED', name='standstatus')
SUBMISSION_TYPE = sa.Enum('FILE', 'LINK', name='submissiontype')
FILE_SUBMISSION_KIND = sa.Enum('LOGO', 'RENDER', 'TECHNICAL_DRAWING', name='filesubmissionkind')
DRAWING_TYPE = sa.Enum(
    'FLOOR_PLAN', 'ELEVATION', 'STRUCTURAL', 'ELECTRICAL', 'OTHER', name='drawingtype')
NOTIFICATION_AUDIENCE = sa.Enum('ADMIN', 'PARTNER', name='notificationaudience')
NOTIFICATION_TYPE = sa.Enum('INFO', 'ACTION_REQUIRED', 'STATUS_CHANGE', name='notificationtype')
AUDIT_ACTION = sa.Enum('CREATE', 'UPDATE', 'DELETE', name='auditaction')


def upgrade():
    op.create_table(
        'standconfiguration',
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('status', CONFIGURATION_STATUS, nullable=False),
        sa.Column('version', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('version_history', sa.JSON(), nullable=True),
        sa.Column('artwork_requirements', sa.JSON(), nullable=True),
        sa.Column('available_voltages', sa.JSON(), nullable=True),
        sa.Column('guidelines', sa.JSON(), nullable=True),
        sa.Column('applicable_booth_types', sa.JSON(), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_standconfiguration_name'),
                    'standconfiguration', ['name'], unique=False)
    op.create_index(op.f('ix_standconfiguration_is_default'),
                    'standconfiguration', ['is_default'], unique=False)
    op.create_index('uq_standconfiguration_single_default',
                    'standconfiguration', ['is_default'], unique=True,
                    sqlite_where=sa.text('is_default'),
                    postgresql_where=sa.text('is_default'))

    op.create_table(
        'stand',
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('partner_id', sa.Uuid(), nullable=False),
        sa.Column('configuration_id', sa.Uuid(), nullable=True),
        sa.Column('booth_number', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('booth_construction_type', BOOTH_TYPE, nullable=True),
        sa.Column('status', STAND_STATUS, nullable=False),
        sa.Column('submission_deadline', sa.Date(), nullable=True),
        sa.Column('technical_drawing_link', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('stand_render_link', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('technical_specs_link', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('branding_areas_link', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('exhibitor_manual_link', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('admin_notes', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('revision_feedback', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('av_requirements', sa.JSON(), nullable=True),
        sa.Column('power_voltage', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('power_outlets', sa.Integer(), nullable=True),
        sa.Column('special_requirements', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('admin_defined_voltages', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['configuration_id'], ['standconfiguration.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_stand_partner_id'), 'stand', ['partner_id'], unique=True)
    op.create_index(op.f('ix_stand_status'), 'stand', ['status'], unique=False)

    op.create_table(
        'standrevision',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('stand_id', sa.Uuid(), nullable=False),
        sa.Column('status', STAND_STATUS, nullable=False),
        sa.Column('feedback', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('changed_by', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('changed_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['stand_id'], ['stand.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_standrevision_stand_id'),
                    'standrevision', ['stand_id'], unique=False)

    op.create_table(
        'artworksubmission',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('stand_id', sa.Uuid(), nullable=False),
        sa.Column('submission_type', SUBMISSION_TYPE, nullable=False),
        sa.Column('file_url', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('link_url', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('file_name', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('width', sa.Float(), nullable=False),
        sa.Column('height', sa.Float(), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('artwork_type', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('requirement_name', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
        sa.Column('submitted_by', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.ForeignKeyConstraint(['stand_id'], ['stand.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_artworksubmission_stand_id'),
                    'artworksubmission', ['stand_id'], unique=False)

    op.create_table(
        'submissioncomment',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('artwork_id', sa.Uuid(), nullable=False),
        sa.Column('comment', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('created_by', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('is_admin_feedback', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['artwork_id'], ['artworksubmission.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_submissioncomment_artwork_id'),
                    'submissioncomment', ['artwork_id'], unique=False)

    op.create_table(
        'standfilesubmission',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('stand_id', sa.Uuid(), nullable=False),
        sa.Column('kind', FILE_SUBMISSION_KIND, nullable=False),
        sa.Column('file_url', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('file_name', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('drawing_type', DRAWING_TYPE, nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
        sa.Column('submitted_by', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.ForeignKeyConstraint(['stand_id'], ['stand.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_standfilesubmission_stand_id'),
                    'standfilesubmission', ['stand_id'], unique=False)
    op.create_index(op.f('ix_standfilesubmission_kind'),
                    'standfilesubmission', ['kind'], unique=False)

    op.create_table(
        'partnercomment',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('stand_id', sa.Uuid(), nullable=False),
        sa.Column('comment', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('created_by', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['stand_id'], ['stand.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_partnercomment_stand_id'),
                    'partnercomment', ['stand_id'], unique=False)

    op.create_table(
        'standmessage',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('stand_id', sa.Uuid(), nullable=False),
        sa.Column('message', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('sender_email', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('sender_name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('sender_title', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False),
        sa.Column('attachment_url', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('attachment_name', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['stand_id'], ['stand.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_standmessage_stand_id'),
                    'standmessage', ['stand_id'], unique=False)

    op.create_table(
        'notification',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('audience', NOTIFICATION_AUDIENCE, nullable=False),
        sa.Column('partner_id', sa.Uuid(), nullable=True),
        sa.Column('title', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('message', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('type', NOTIFICATION_TYPE, nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notification_audience'),
                    'notification', ['audience'], unique=False)
    op.create_index(op.f('ix_notification_partner_id'),
                    'notification', ['partner_id'], unique=False)

    op.create_table(
        'activitylog',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('actor_email', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('entity_type', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('action', AUDIT_ACTION, nullable=False),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_activitylog_actor_email'),
                    'activitylog', ['actor_email'], unique=False)
    op.create_index(op.f('ix_activitylog_entity_id'),
                    'activitylog', ['entity_id'], unique=False)


def downgrade():
    op.drop_table('activitylog')
    op.drop_table('notification')
    op.drop_table('standmessage')
    op.drop_table('partnercomment')
    op.drop_table('standfilesubmission')
    op.drop_table('submissioncomment')
    op.drop_table('artworksubmission')
    op.drop_table('standrevision')
    op.drop_table('stand')
    op.drop_table('standconfiguration')

    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for enum in (AUDIT_ACTION, NOTIFICATION_TYPE, NOTIFICATION_AUDIENCE, DRAWING_TYPE,
                     FILE_SUBMISSION_KIND, SUBMISSION_TYPE, STAND_STATUS, BOOTH_TYPE,
                     CONFIGURATION_STATUS):
            enum.drop(bind, checkfirst=True)
