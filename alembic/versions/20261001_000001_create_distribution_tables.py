"""Create distribution tables.

Revision ID: 20261001_000001
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '20261001_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, plans, investments, activations, ledger and audit tables."""

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('wallet', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('wallet_topup', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('total_investment', sa.DECIMAL(18, 8), nullable=False, server_default='0', comment='Cached sum of active principal'),
        sa.Column('total_earned', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('capping_limit', sa.DECIMAL(18, 8), nullable=True, comment='Remaining payout ceiling, NULL = unlimited'),
        sa.Column('referrer_id', sa.Integer(), nullable=True, comment='Direct sponsor, NULL only for the root account'),
        sa.Column('placement_id', sa.Integer(), nullable=True),
        sa.Column('daily_profit_activated', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('last_activation_date', sa.Date(), nullable=True),
        sa.Column('rank', sa.String(32), nullable=False, server_default='ACTIVE'),
        sa.Column('trade_booster', sa.DECIMAL(10, 4), nullable=False, server_default='2.5'),
        sa.Column('daily_limit_view', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('rank_level_roi_depth', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['referrer_id'], ['users.id']),
        sa.ForeignKeyConstraint(['placement_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('wallet >= 0', name='check_user_wallet_non_negative'),
        sa.CheckConstraint('wallet_topup >= 0', name='check_user_wallet_topup_non_negative'),
        sa.CheckConstraint('total_investment >= 0', name='check_user_total_investment_non_negative'),
        sa.CheckConstraint('total_earned >= 0', name='check_user_total_earned_non_negative'),
        sa.CheckConstraint('capping_limit IS NULL OR capping_limit >= 0', name='check_user_capping_limit_non_negative'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_referrer_id', 'users', ['referrer_id'])
    op.create_index('ix_users_placement_id', 'users', ['placement_id'])

    op.create_table(
        'investment_plans',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('title', sa.String(100), nullable=False),
        sa.Column('tier', sa.Integer(), nullable=False),
        sa.Column('daily_rate_percent', sa.DECIMAL(10, 4), nullable=False, comment='0.8 = 0.8% per day'),
        sa.Column('amount_from', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('amount_to', sa.DECIMAL(18, 8), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('daily_rate_percent >= 0', name='check_plan_daily_rate_non_negative'),
        sa.CheckConstraint('tier >= 0', name='check_plan_tier_non_negative'),
    )
    op.create_index('ix_investment_plans_tier', 'investment_plans', ['tier'])

    op.create_table(
        'investments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('last_profit_date', sa.Date(), nullable=True, comment='Last settled calendar day'),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('extra', postgresql.JSONB(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['plan_id'], ['investment_plans.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('amount > 0', name='check_investment_amount_positive'),
        sa.CheckConstraint(
            "status IN ('active', 'completed', 'cancelled')",
            name='check_investment_status_valid',
        ),
    )
    op.create_index('ix_investments_user_id', 'investments', ['user_id'])
    op.create_index('ix_investments_plan_id', 'investments', ['plan_id'])
    op.create_index('ix_investments_status', 'investments', ['status'])
    op.create_index('idx_investment_status_last_profit', 'investments', ['status', 'last_profit_date'])

    op.create_table(
        'cron_executions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('job_name', sa.String(64), nullable=False),
        sa.Column('business_date', sa.Date(), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='running'),
        sa.Column('triggered_by', sa.String(20), nullable=False, server_default='automatic'),
        sa.Column('processed_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('error_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error_details', postgresql.JSONB(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_cron_executions_job_name', 'cron_executions', ['job_name'])

    op.create_table(
        'trade_activations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('activation_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('profit_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('profit_processed_at', sa.DateTime(timezone=True), nullable=True, comment='activation_date + 1 day at the recognition hour'),
        sa.Column('profit_amount', sa.DECIMAL(18, 8), nullable=False, server_default='0'),
        sa.Column('profit_details', postgresql.JSONB(), nullable=True),
        sa.Column('profit_error', sa.Text(), nullable=True),
        sa.Column('cron_execution_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['cron_execution_id'], ['cron_executions.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'activation_date', name='uq_trade_activation_user_day'),
    )
    op.create_index('ix_trade_activations_user_id', 'trade_activations', ['user_id'])
    op.create_index('ix_trade_activations_cron_execution_id', 'trade_activations', ['cron_execution_id'])
    op.create_index(
        'idx_trade_activation_day_profit_status',
        'trade_activations',
        ['activation_date', 'profit_status'],
    )

    op.create_table(
        'incomes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False, comment='Recipient'),
        sa.Column('user_id_from', sa.Integer(), nullable=True),
        sa.Column('type', sa.String(32), nullable=False),
        sa.Column('amount', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='credited'),
        sa.Column('reference', sa.String(128), nullable=False),
        sa.Column('business_date', sa.Date(), nullable=True),
        sa.Column('idempotency_key', sa.String(255), nullable=False),
        sa.Column('cron_execution_id', sa.Integer(), nullable=True),
        sa.Column('extra', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id_from'], ['users.id']),
        sa.ForeignKeyConstraint(['cron_execution_id'], ['cron_executions.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_key'),
        sa.CheckConstraint('amount > 0', name='check_income_amount_positive'),
        sa.CheckConstraint('level >= 0', name='check_income_level_non_negative'),
    )
    op.create_index('ix_incomes_user_id', 'incomes', ['user_id'])
    op.create_index('ix_incomes_user_id_from', 'incomes', ['user_id_from'])
    op.create_index('ix_incomes_cron_execution_id', 'incomes', ['cron_execution_id'])
    op.create_index('idx_income_type_business_date', 'incomes', ['type', 'business_date'])

    op.create_table(
        'team_rewards',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('team_deposit', sa.DECIMAL(18, 8), nullable=False, comment='Milestone reached'),
        sa.Column('time_period', sa.Integer(), nullable=False, comment='Maturity delay in days'),
        sa.Column('reward_amount', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('matures_on', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('income_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['income_id'], ['incomes.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'team_deposit', name='uq_team_reward_user_tier'),
    )
    op.create_index('ix_team_rewards_user_id', 'team_rewards', ['user_id'])
    op.create_index('ix_team_rewards_matures_on', 'team_rewards', ['matures_on'])


def downgrade() -> None:
    """Drop distribution tables."""
    op.drop_table('team_rewards')
    op.drop_table('incomes')
    op.drop_table('trade_activations')
    op.drop_table('cron_executions')
    op.drop_table('investments')
    op.drop_table('investment_plans')
    op.drop_table('users')
