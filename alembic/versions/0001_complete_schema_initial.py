"""complete_schema_initial

Revision ID: 0001_complete_schema_initial
Revises:
Create Date: 2025-11-02 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from db_service.types import Money, Percent, UTCDateTime


# revision identifiers, used by Alembic.
revision: str = '0001_complete_schema_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.Column('updated_at', UTCDateTime(), nullable=False),
    ]


def upgrade() -> None:
    """Create the ten tables of the financial model and their indexes"""
    op.create_table(
        'users',
        *_base_columns(),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('time_zone', sa.String(length=100), nullable=False),
        sa.Column('default_forecast_horizon_days', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'accounts',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('institution', sa.String(length=255), nullable=True),
        sa.Column('account_type', sa.String(length=100), nullable=False),
        sa.Column('domain', sa.Integer(), nullable=False),
        sa.Column('current_balance', Money(), nullable=False),
        sa.Column('safe_minimum_balance', Money(), nullable=False),
        sa.Column('include_in_forecast', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('external_account_id', sa.String(length=255), nullable=True),
        sa.Column('last_synced_at', UTCDateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_accounts_user_id', 'accounts', ['user_id'])
    op.create_index('ix_accounts_domain', 'accounts', ['domain'])
    op.create_index('ix_accounts_is_active', 'accounts', ['is_active'])

    op.create_table(
        'bills',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('amount', Money(), nullable=False),
        sa.Column('frequency', sa.Integer(), nullable=False),
        sa.Column('day_of_month', sa.Integer(), nullable=True),
        sa.Column('day_of_week', sa.Integer(), nullable=True),
        sa.Column('next_due_date', UTCDateTime(), nullable=False),
        sa.Column('domain', sa.Integer(), nullable=False),
        sa.Column('default_account_id', sa.Uuid(), nullable=True),
        sa.Column('priority', sa.Integer(), nullable=False),
        sa.Column('is_auto_pay', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['default_account_id'], ['accounts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_bills_user_id', 'bills', ['user_id'])
    op.create_index('ix_bills_next_due_date', 'bills', ['next_due_date'])
    op.create_index('ix_bills_domain', 'bills', ['domain'])
    op.create_index('ix_bills_default_account_id', 'bills', ['default_account_id'])
    op.create_index('ix_bills_is_active', 'bills', ['is_active'])

    op.create_table(
        'income_streams',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('typical_amount', Money(), nullable=False),
        sa.Column('frequency', sa.Integer(), nullable=False),
        sa.Column('domain', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Uuid(), nullable=False),
        sa.Column('last_received_date', UTCDateTime(), nullable=True),
        sa.Column('last_received_amount', Money(), nullable=True),
        sa.Column('next_expected_date', UTCDateTime(), nullable=True),
        sa.Column('next_expected_window_start', UTCDateTime(), nullable=True),
        sa.Column('next_expected_window_end', UTCDateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_income_streams_user_id', 'income_streams', ['user_id'])
    op.create_index('ix_income_streams_domain', 'income_streams', ['domain'])
    op.create_index('ix_income_streams_account_id', 'income_streams', ['account_id'])
    op.create_index('ix_income_streams_next_expected_date', 'income_streams', ['next_expected_date'])
    op.create_index('ix_income_streams_is_active', 'income_streams', ['is_active'])

    op.create_table(
        'goals',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('target_amount', Money(), nullable=False),
        sa.Column('current_amount', Money(), nullable=False),
        sa.Column('target_date', UTCDateTime(), nullable=False),
        sa.Column('domain', sa.Integer(), nullable=False),
        sa.Column('funding_strategy', sa.Integer(), nullable=False),
        sa.Column('fixed_contribution_amount', Money(), nullable=True),
        sa.Column('percent_of_income', Percent(), nullable=True),
        sa.Column('priority', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_goals_user_id', 'goals', ['user_id'])
    op.create_index('ix_goals_target_date', 'goals', ['target_date'])
    op.create_index('ix_goals_domain', 'goals', ['domain'])
    op.create_index('ix_goals_is_active', 'goals', ['is_active'])

    op.create_table(
        'transactions',
        *_base_columns(),
        sa.Column('account_id', sa.Uuid(), nullable=False),
        sa.Column('amount', Money(), nullable=False),
        sa.Column('date', UTCDateTime(), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('normalized_merchant', sa.String(length=255), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('is_reconciled', sa.Boolean(), nullable=False),
        sa.Column('bill_id', sa.Uuid(), nullable=True),
        sa.Column('income_stream_id', sa.Uuid(), nullable=True),
        sa.Column('goal_id', sa.Uuid(), nullable=True),
        sa.Column('transfer_account_id', sa.Uuid(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('external_transaction_id', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['bill_id'], ['bills.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['income_stream_id'], ['income_streams.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['goal_id'], ['goals.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['transfer_account_id'], ['accounts.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    # Historique d'un compte, du plus récent au plus ancien
    op.create_index(
        'ix_transactions_account_id_date',
        'transactions',
        ['account_id', sa.text('date DESC')],
    )
    op.create_index('ix_transactions_bill_id', 'transactions', ['bill_id'])
    op.create_index('ix_transactions_income_stream_id', 'transactions', ['income_stream_id'])
    op.create_index('ix_transactions_goal_id', 'transactions', ['goal_id'])
    op.create_index('ix_transactions_transfer_account_id', 'transactions', ['transfer_account_id'])

    op.create_table(
        'goal_accounts',
        *_base_columns(),
        sa.Column('goal_id', sa.Uuid(), nullable=False),
        sa.Column('account_id', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(['goal_id'], ['goals.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_goal_accounts_goal_id', 'goal_accounts', ['goal_id'])
    op.create_index('ix_goal_accounts_account_id', 'goal_accounts', ['account_id'])
    op.create_index(
        'ix_goal_accounts_goal_id_account_id',
        'goal_accounts',
        ['goal_id', 'account_id'],
        unique=True,
    )

    op.create_table(
        'alerts',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.Integer(), nullable=False),
        sa.Column('severity', sa.Integer(), nullable=False),
        sa.Column('state', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('recommended_action', sa.Text(), nullable=True),
        sa.Column('domain', sa.Integer(), nullable=True),
        sa.Column('related_account_id', sa.Uuid(), nullable=True),
        sa.Column('related_bill_id', sa.Uuid(), nullable=True),
        sa.Column('related_goal_id', sa.Uuid(), nullable=True),
        sa.Column('related_income_stream_id', sa.Uuid(), nullable=True),
        sa.Column('triggered_at', UTCDateTime(), nullable=False),
        sa.Column('acknowledged_at', UTCDateTime(), nullable=True),
        sa.Column('snoozed_until', UTCDateTime(), nullable=True),
        sa.Column('resolved_at', UTCDateTime(), nullable=True),
        sa.Column('expires_at', UTCDateTime(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['related_account_id'], ['accounts.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['related_bill_id'], ['bills.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['related_goal_id'], ['goals.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(
            ['related_income_stream_id'], ['income_streams.id'], ondelete='SET NULL'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_alerts_user_id', 'alerts', ['user_id'])
    op.create_index('ix_alerts_type', 'alerts', ['type'])
    op.create_index('ix_alerts_severity', 'alerts', ['severity'])
    op.create_index('ix_alerts_state', 'alerts', ['state'])
    op.create_index('ix_alerts_triggered_at', 'alerts', [sa.text('triggered_at DESC')])
    op.create_index('ix_alerts_related_account_id', 'alerts', ['related_account_id'])
    op.create_index('ix_alerts_related_bill_id', 'alerts', ['related_bill_id'])
    op.create_index('ix_alerts_related_goal_id', 'alerts', ['related_goal_id'])
    op.create_index('ix_alerts_related_income_stream_id', 'alerts', ['related_income_stream_id'])

    op.create_table(
        'forecast_snapshots',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('domain', sa.Integer(), nullable=False),
        sa.Column('horizon_days', sa.Integer(), nullable=False),
        sa.Column('generated_at', UTCDateTime(), nullable=False),
        sa.Column('start_date', UTCDateTime(), nullable=False),
        sa.Column('end_date', UTCDateTime(), nullable=False),
        sa.Column('forecast_data', sa.Text(), nullable=False),
        sa.Column('runway_days', sa.Integer(), nullable=True),
        sa.Column('status', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_forecast_snapshots_lookup',
        'forecast_snapshots',
        ['user_id', 'domain', 'horizon_days', sa.text('generated_at DESC')],
    )

    op.create_table(
        'settings',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('setting_key', sa.String(length=255), nullable=False),
        sa.Column('setting_value', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_settings_user_id', 'settings', ['user_id'])
    op.create_index(
        'ix_settings_user_id_setting_key',
        'settings',
        ['user_id', 'setting_key'],
        unique=True,
    )


def downgrade() -> None:
    """Drop every table of the financial model"""
    for table in (
        'settings',
        'forecast_snapshots',
        'alerts',
        'goal_accounts',
        'transactions',
        'goals',
        'income_streams',
        'bills',
        'accounts',
        'users',
    ):
        op.drop_table(table)
