"""Create transit tables

Revision ID: 001
Revises:
Create Date: 2026-09-28
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Users table (id is the token subject)
    op.create_table(
        'users',
        sa.Column('id', sa.String(100), primary_key=True),
        sa.Column('email', sa.String(255), nullable=True, unique=True),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('profile_image_url', sa.String(500), nullable=True),
        sa.Column('notifications_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('delay_alerts_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('alert_timing_minutes', sa.Integer(), nullable=False, server_default='15'),
        sa.Column('push_notifications', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('email_notifications', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sms_notifications', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('preferred_language', sa.String(5), nullable=False, server_default='sv'),
        sa.Column('theme', sa.String(10), nullable=False, server_default='system'),
        sa.Column('phone', sa.String(30), nullable=True),
        sa.Column('address', sa.String(255), nullable=True),
        sa.Column('emergency_contact', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    # Stop areas (SL site ids)
    op.create_table(
        'stop_areas',
        sa.Column('id', sa.String(50), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('lat', sa.Float(), nullable=True),
        sa.Column('lon', sa.Float(), nullable=True),
        sa.Column(
            'type',
            sa.Enum('METROSTN', 'RAILWSTN', 'BUSTERM', 'TRAMSTN', 'FERRY', 'OTHER', name='stoptype'),
            nullable=False,
            server_default='OTHER',
        ),
    )
    op.create_index('ix_stop_areas_name', 'stop_areas', ['name'])

    # Stop points (platforms within an area)
    op.create_table(
        'stop_points',
        sa.Column('id', sa.String(50), primary_key=True),
        sa.Column('area_id', sa.String(50), sa.ForeignKey('stop_areas.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('designation', sa.String(20), nullable=True),
    )
    op.create_index('ix_stop_points_area_id', 'stop_points', ['area_id'])

    # Lines
    op.create_table(
        'lines',
        sa.Column('id', sa.String(50), primary_key=True),
        sa.Column('number', sa.String(20), nullable=False),
        sa.Column(
            'mode',
            sa.Enum('BUS', 'METRO', 'TRAIN', 'TRAM', 'FERRY', name='transportmode'),
            nullable=False,
        ),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('operator_id', sa.String(50), nullable=True),
        sa.Column('color', sa.String(7), nullable=False),
    )
    op.create_index('ix_lines_number', 'lines', ['number'])

    # Saved routes
    op.create_table(
        'saved_routes',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(100), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('origin_area_id', sa.String(50), nullable=False),
        sa.Column('destination_area_id', sa.String(50), nullable=False),
        sa.Column('via_area_id', sa.String(50), nullable=True),
        sa.Column('preferred_departure_time', sa.String(5), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_saved_routes_user_id', 'saved_routes', ['user_id'])

    # Commute routes (active_days is a Monday=1 .. Sunday=64 bit set)
    op.create_table(
        'commute_routes',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(100), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('origin_area_id', sa.String(50), nullable=False),
        sa.Column('origin_name', sa.String(255), nullable=False),
        sa.Column('destination_area_id', sa.String(50), nullable=False),
        sa.Column('destination_name', sa.String(255), nullable=False),
        sa.Column('active_days', sa.Integer(), nullable=False, server_default='31'),
        sa.Column('departure_time', sa.String(5), nullable=False),
        sa.Column('notifications_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('alert_minutes_before', sa.Integer(), nullable=False, server_default='15'),
        sa.Column('delay_threshold_minutes', sa.Integer(), nullable=False, server_default='20'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_commute_routes_user_id', 'commute_routes', ['user_id'])

    # Tracked journeys
    op.create_table(
        'journeys',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(100), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('saved_route_id', sa.String(36), sa.ForeignKey('saved_routes.id', ondelete='SET NULL'), nullable=True),
        sa.Column('commute_route_id', sa.String(36), sa.ForeignKey('commute_routes.id', ondelete='SET NULL'), nullable=True),
        sa.Column('origin_area_id', sa.String(50), nullable=False),
        sa.Column('destination_area_id', sa.String(50), nullable=False),
        sa.Column('planned_departure', sa.DateTime(), nullable=False),
        sa.Column('planned_arrival', sa.DateTime(), nullable=False),
        sa.Column('expected_departure', sa.DateTime(), nullable=True),
        sa.Column('expected_arrival', sa.DateTime(), nullable=True),
        sa.Column('actual_departure', sa.DateTime(), nullable=True),
        sa.Column('actual_arrival', sa.DateTime(), nullable=True),
        sa.Column('delay_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column(
            'status',
            sa.Enum('PLANNED', 'ACTIVE', 'COMPLETED', 'CANCELLED', name='journeystatus'),
            nullable=False,
            server_default='PLANNED',
        ),
        sa.Column('legs', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_journeys_user_id', 'journeys', ['user_id'])
    op.create_index('ix_journeys_user_status', 'journeys', ['user_id', 'status'])

    # Compensation cases (one per journey)
    op.create_table(
        'compensation_cases',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(100), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('journey_id', sa.String(36), sa.ForeignKey('journeys.id', ondelete='CASCADE'), nullable=False),
        sa.Column('delay_minutes', sa.Integer(), nullable=False),
        sa.Column('eligibility_threshold', sa.Integer(), nullable=False, server_default='20'),
        sa.Column(
            'status',
            sa.Enum(
                'DETECTED', 'DRAFT', 'SUBMITTED', 'PROCESSING', 'APPROVED', 'REJECTED',
                name='casestatus',
            ),
            nullable=False,
            server_default='DETECTED',
        ),
        sa.Column('ticket_type', sa.String(20), nullable=True),
        sa.Column('estimated_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('actual_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('encrypted_personal_data', sa.Text(), nullable=True),
        sa.Column('evidence_ids', sa.JSON(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('journey_id', name='uq_compensation_cases_journey'),
    )
    op.create_index('ix_compensation_cases_user_id', 'compensation_cases', ['user_id'])

    # User notifications
    op.create_table(
        'user_notifications',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(100), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column(
            'type',
            sa.Enum(
                'DELAY', 'CANCELLATION', 'COMPENSATION', 'ROUTE_CHANGE', 'MAINTENANCE', 'DEPARTURE_REMINDER',
                name='notificationtype',
            ),
            nullable=False,
        ),
        sa.Column(
            'severity',
            sa.Enum('LOW', 'MEDIUM', 'HIGH', 'CRITICAL', name='notificationseverity'),
            nullable=False,
            server_default='MEDIUM',
        ),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('related_route_id', sa.String(36), nullable=True),
        sa.Column('related_journey_id', sa.String(36), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_user_notifications_user_created', 'user_notifications', ['user_id', 'created_at'])

    # Service alerts
    op.create_table(
        'service_alerts',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column(
            'severity',
            sa.Enum('INFO', 'WARNING', 'DISRUPTION', 'MAINTENANCE', name='alertseverity'),
            nullable=False,
            server_default='INFO',
        ),
        sa.Column('affected_lines', sa.JSON(), nullable=False),
        sa.Column('affected_stops', sa.JSON(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=True),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('source', sa.String(20), nullable=False, server_default='SL'),
        sa.Column('external_id', sa.String(100), nullable=True, unique=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    # Browser push subscriptions
    op.create_table(
        'push_subscriptions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(100), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('endpoint', sa.Text(), nullable=False),
        sa.Column('p256dh', sa.String(255), nullable=False),
        sa.Column('auth', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'endpoint', name='uq_push_subscriptions_user_endpoint'),
    )
    op.create_index('ix_push_subscriptions_user_id', 'push_subscriptions', ['user_id'])


def downgrade() -> None:
    op.drop_table('push_subscriptions')
    op.drop_table('service_alerts')
    op.drop_table('user_notifications')
    op.drop_table('compensation_cases')
    op.drop_table('journeys')
    op.drop_table('commute_routes')
    op.drop_table('saved_routes')
    op.drop_table('lines')
    op.drop_table('stop_points')
    op.drop_table('stop_areas')
    op.drop_table('users')

    op.execute('DROP TYPE IF EXISTS alertseverity')
    op.execute('DROP TYPE IF EXISTS notificationseverity')
    op.execute('DROP TYPE IF EXISTS notificationtype')
    op.execute('DROP TYPE IF EXISTS casestatus')
    op.execute('DROP TYPE IF EXISTS journeystatus')
    op.execute('DROP TYPE IF EXISTS transportmode')
    op.execute('DROP TYPE IF EXISTS stoptype')
