"""Initial dispatch schema

Revision ID: 20251019_initial_dispatch_schema
Revises:
Create Date: 2025-10-19 09:00:00
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '20251019_initial_dispatch_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

event_status = sa.Enum('draft', 'published', 'cancelled', 'completed', name='eventstatus')
attendee_status = sa.Enum(
    'registered', 'confirmed', 'checked-in', 'attended', 'cancelled', 'waitlisted', name='attendeestatus'
)
send_timing = sa.Enum('after_event', 'during_event', 'custom', name='sendtiming')
notification_type = sa.Enum('event', 'survey', 'reminder', 'info', name='notificationtype')
device_platform = sa.Enum('ios', 'android', 'web', name='deviceplatform')


def upgrade() -> None:
    op.create_table(
        'events',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('status', event_status, nullable=False),
        sa.Column('created_by_id', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_events_id', 'events', ['id'])
    op.create_index('ix_events_start_date', 'events', ['start_date'])
    op.create_index('ix_events_end_date', 'events', ['end_date'])

    op.create_table(
        'attendees',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('event_id', sa.String(), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('status', attendee_status, nullable=False),
        sa.Column('registered_at', sa.DateTime(), nullable=False),
        sa.Column('checked_in_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('event_id', 'user_id', name='uq_attendees_event_user'),
    )
    op.create_index('ix_attendees_event_id', 'attendees', ['event_id'])
    op.create_index('ix_attendees_user_id', 'attendees', ['user_id'])

    op.create_table(
        'survey_templates',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('event_id', sa.String(), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('send_timing', send_timing, nullable=False),
        sa.Column('send_delay', sa.Float(), nullable=True),
        sa.Column('send_time', sa.DateTime(), nullable=True),
        sa.Column('reminder_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('reminder_delay', sa.Float(), nullable=True),
        sa.Column('created_by_id', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_survey_templates_event_id', 'survey_templates', ['event_id'])

    op.create_table(
        'survey_responses',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('template_id', sa.String(), sa.ForeignKey('survey_templates.id'), nullable=False),
        sa.Column('event_id', sa.String(), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_survey_responses_template_user', 'survey_responses', ['template_id', 'user_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('type', notification_type, nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('event_id', sa.String(), nullable=True),
        sa.Column('action_url', sa.String(), nullable=True),
        sa.Column('action_label', sa.String(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_event_id', 'notifications', ['event_id'])

    op.create_table(
        'notification_preferences',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('email_notifications', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('event_reminders', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('survey_reminders', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('whatsapp_notifications', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('sms_notifications', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_notification_preferences_user_id', 'notification_preferences', ['user_id'], unique=True)

    op.create_table(
        'device_tokens',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('fcm_token', sa.String(), nullable=False),
        sa.Column('platform', device_platform, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('last_used', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.String(), nullable=True, server_default='true'),
    )
    op.create_index('ix_device_tokens_user_id', 'device_tokens', ['user_id'])
    op.create_index('ix_device_tokens_fcm_token', 'device_tokens', ['fcm_token'], unique=True)

    op.create_table(
        'dispatch_records',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('entity_id', sa.String(), nullable=False),
        sa.Column('recipient_id', sa.String(), nullable=False),
        sa.Column('window_start', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('action', 'entity_id', 'recipient_id', 'window_start', name='uq_dispatch_records_key'),
    )
    op.create_index('ix_dispatch_records_entity_id', 'dispatch_records', ['entity_id'])


def downgrade() -> None:
    op.drop_index('ix_dispatch_records_entity_id', table_name='dispatch_records')
    op.drop_table('dispatch_records')
    op.drop_index('ix_device_tokens_fcm_token', table_name='device_tokens')
    op.drop_index('ix_device_tokens_user_id', table_name='device_tokens')
    op.drop_table('device_tokens')
    op.drop_index('ix_notification_preferences_user_id', table_name='notification_preferences')
    op.drop_table('notification_preferences')
    op.drop_index('ix_notifications_event_id', table_name='notifications')
    op.drop_index('ix_notifications_user_id', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_survey_responses_template_user', table_name='survey_responses')
    op.drop_table('survey_responses')
    op.drop_index('ix_survey_templates_event_id', table_name='survey_templates')
    op.drop_table('survey_templates')
    op.drop_index('ix_attendees_user_id', table_name='attendees')
    op.drop_index('ix_attendees_event_id', table_name='attendees')
    op.drop_table('attendees')
    op.drop_index('ix_events_end_date', table_name='events')
    op.drop_index('ix_events_start_date', table_name='events')
    op.drop_index('ix_events_id', table_name='events')
    op.drop_table('events')

    bind = op.get_bind()
    for enum_type in (device_platform, notification_type, send_timing, attendee_status, event_status):
        enum_type.drop(bind, checkfirst=True)
