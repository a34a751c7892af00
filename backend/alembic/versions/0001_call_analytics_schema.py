"""Call analytics schema, role tiers and the daily metrics view

Revision ID: 0001
Revises:
Create Date: 2026-09-02

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from callboard.config.permissions import ROLE_TIERS

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Per-location daily rollup. Days are local to the location; only the first
# order and first reservation of a call count, matching the live fold.
METRICS_DAILY_VIEW = """
CREATE MATERIALIZED VIEW mv_metrics_daily AS
WITH calls AS (
    SELECT c.call_id,
           c.location_id,
           (c.started_at_utc AT TIME ZONE COALESCE(l.time_zone, 'America/New_York'))::date AS date,
           c.status,
           c.corrected_duration_seconds
    FROM call_logs c
    JOIN locations l ON l.location_id = c.location_id
),
first_orders AS (
    SELECT DISTINCT ON (call_id) call_id, total
    FROM order_logs
    ORDER BY call_id, order_id
),
first_reservations AS (
    SELECT DISTINCT ON (call_id) call_id,
           COALESCE(NULLIF(guest_count, 0), 2) * 5000 AS estimate
    FROM reservations
    ORDER BY call_id, reservation_id
),
call_upsells AS (
    SELECT o.call_id, COUNT(u.upsell_id) AS upsells_count, COALESCE(SUM(u.value), 0) AS upsell_value
    FROM upsells u
    JOIN order_logs o ON o.order_id = u.order_id
    GROUP BY o.call_id
)
SELECT calls.location_id,
       calls.date,
       COUNT(*)::int AS total_calls,
       COUNT(*) FILTER (WHERE calls.status = 'completed')::int AS completed_calls,
       COUNT(fo.call_id)::int AS orders_count,
       COUNT(fr.call_id)::int AS reservations_count,
       COALESCE(SUM(fo.total), 0)::bigint AS total_revenue_orders,
       COALESCE(SUM(fr.estimate), 0)::bigint AS total_revenue_res_estimate,
       (COALESCE(SUM(fo.total), 0) + COALESCE(SUM(fr.estimate), 0))::bigint AS total_revenue_combined,
       COALESCE(SUM(cu.upsells_count), 0)::int AS upsells_count,
       COALESCE(SUM(cu.upsell_value), 0)::bigint AS total_upsell_value,
       (COALESCE(SUM(calls.corrected_duration_seconds), 0) / 60.0)::float AS minutes_saved,
       AVG(calls.corrected_duration_seconds)::float AS avg_call_duration_seconds
FROM calls
LEFT JOIN first_orders fo ON fo.call_id = calls.call_id
LEFT JOIN first_reservations fr ON fr.call_id = calls.call_id
LEFT JOIN call_upsells cu ON cu.call_id = calls.call_id
GROUP BY calls.location_id, calls.date
"""


def upgrade() -> None:
    op.create_table(
        'accounts',
        sa.Column('account_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('account_id')
    )
    op.create_index('ix_accounts_email', 'accounts', ['email'])

    op.create_table(
        'account_settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.account_id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_creation_permission_level', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id')
    )

    op.create_table(
        'locations',
        sa.Column('location_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.account_id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('time_zone', sa.String(), nullable=True),
        sa.Column('notification_email', sa.String(), nullable=True),
        sa.Column('operating_hours_json', postgresql.JSONB(), nullable=True),
        sa.PrimaryKeyConstraint('location_id')
    )
    op.create_index('ix_locations_account_id', 'locations', ['account_id'])

    op.create_table(
        'roles',
        sa.Column('role_id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('role_id')
    )

    op.create_table(
        'roles_permissions',
        sa.Column('role_permission_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.role_id'), nullable=False),
        sa.Column('permission_ids', postgresql.ARRAY(sa.Integer()), nullable=False, server_default='{}'),
        sa.PrimaryKeyConstraint('role_permission_id')
    )

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'user_roles_permissions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('location_id', sa.Integer(), sa.ForeignKey('locations.location_id', ondelete='CASCADE'), nullable=False),
        sa.Column('role_permission_id', sa.Integer(), sa.ForeignKey('roles_permissions.role_permission_id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'location_id', name='uq_user_location_grant')
    )
    op.create_index('ix_user_roles_permissions_user', 'user_roles_permissions', ['user_id'])

    op.create_table(
        'user_audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('modified_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('modified_by_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('changes', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_user_audit_logs_modified_user_id', 'user_audit_logs', ['modified_user_id'])

    op.create_table(
        'call_logs',
        sa.Column('call_id', sa.String(), nullable=False),
        sa.Column('location_id', sa.Integer(), sa.ForeignKey('locations.location_id'), nullable=False),
        sa.Column('started_at_utc', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ended_at_utc', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration_seconds', sa.Integer(), nullable=True),
        sa.Column('corrected_duration_seconds', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(), nullable=True),
        sa.Column('from_number', sa.String(), nullable=True),
        sa.Column('certus_number', sa.String(), nullable=True),
        sa.Column('recording_url', sa.String(), nullable=True),
        sa.Column('transcript_md', sa.Text(), nullable=True),
        sa.Column('summary_md', sa.Text(), nullable=True),
        sa.Column('call_summary', sa.Text(), nullable=True),
        sa.Column('call_summary_short', sa.String(), nullable=True),
        sa.Column('pathway_tags_formatted', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('call_id')
    )
    op.create_index('idx_call_logs_location_started', 'call_logs', ['location_id', 'started_at_utc'])

    op.create_table(
        'order_logs',
        sa.Column('order_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('call_id', sa.String(), sa.ForeignKey('call_logs.call_id', ondelete='CASCADE'), nullable=False),
        sa.Column('total', sa.BigInteger(), nullable=True),
        sa.Column('items', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('order_id')
    )
    op.create_index('ix_order_logs_call_id', 'order_logs', ['call_id'])

    op.create_table(
        'reservations',
        sa.Column('reservation_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('call_id', sa.String(), sa.ForeignKey('call_logs.call_id', ondelete='CASCADE'), nullable=False),
        sa.Column('guest_count', sa.Integer(), nullable=True),
        sa.Column('reservation_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('customer_name', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('reservation_id')
    )
    op.create_index('ix_reservations_call_id', 'reservations', ['call_id'])

    op.create_table(
        'upsells',
        sa.Column('upsell_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('order_logs.order_id', ondelete='CASCADE'), nullable=False),
        sa.Column('item_name', sa.String(), nullable=True),
        sa.Column('value', sa.BigInteger(), nullable=True),
        sa.PrimaryKeyConstraint('upsell_id')
    )
    op.create_index('ix_upsells_order_id', 'upsells', ['order_id'])

    op.create_table(
        'complaints',
        sa.Column('complaint_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('call_id', sa.String(), sa.ForeignKey('call_logs.call_id', ondelete='CASCADE'), nullable=False),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('complaint_id')
    )
    op.create_index('ix_complaints_call_id', 'complaints', ['call_id'])

    # Seed the fixed role tiers
    roles = sa.table(
        'roles',
        sa.column('role_id', sa.Integer()),
        sa.column('name', sa.String()),
        sa.column('description', sa.String()),
    )
    op.bulk_insert(roles, [
        {"role_id": tier, "name": info["label"], "description": info["description"]}
        for tier, info in sorted(ROLE_TIERS.items())
    ])

    op.execute(METRICS_DAILY_VIEW)
    # Unique index allows REFRESH MATERIALIZED VIEW CONCURRENTLY
    op.execute("CREATE UNIQUE INDEX ux_mv_metrics_daily_location_date ON mv_metrics_daily (location_id, date)")


def downgrade() -> None:
    op.execute("DROP MATERIALIZED VIEW IF EXISTS mv_metrics_daily")
    op.drop_table('complaints')
    op.drop_table('upsells')
    op.drop_table('reservations')
    op.drop_table('order_logs')
    op.drop_table('call_logs')
    op.drop_table('user_audit_logs')
    op.drop_table('user_roles_permissions')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.drop_table('roles_permissions')
    op.drop_table('roles')
    op.drop_table('locations')
    op.drop_table('account_settings')
    op.drop_table('accounts')
