"""Create placement and reward ledger tables.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=None if nullable else sa.func.now(),
    )


def upgrade() -> None:
    """Create ledger, referral, user state and config tables."""

    op.create_table(
        'locations',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='running'),
        sa.Column('usdt', sa.BigInteger(), nullable=False),
        sa.Column('out_rate', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('current_max', sa.BigInteger(), nullable=False),
        sa.Column('current_max_new', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('current_amount_b', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('top', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('top_num', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('total_two', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('total_three', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('last_level', sa.Integer(), nullable=False, server_default='0'),
        _timestamp('stop_date', nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('current >= 0', name='check_location_current_non_negative'),
        sa.CheckConstraint(
            'current <= current_max', name='check_location_current_not_exceeds_max'
        ),
        sa.CheckConstraint('usdt > 0', name='check_location_usdt_positive'),
        sa.CheckConstraint(
            'top_num >= 0 AND top_num <= 3', name='check_location_top_num_range'
        ),
        sa.CheckConstraint(
            'total >= 0 AND total_two >= 0 AND total_three >= 0',
            name='check_location_totals_non_negative',
        ),
        sa.CheckConstraint(
            'last_level >= 0 AND last_level <= 5',
            name='check_location_last_level_range',
        ),
    )
    op.create_index('ix_locations_user_id', 'locations', ['user_id'])
    op.create_index('ix_locations_status', 'locations', ['status'])
    op.create_index('ix_locations_created_at', 'locations', ['created_at'])
    op.create_index('idx_location_user_status', 'locations', ['user_id', 'status'])
    op.create_index('idx_location_top', 'locations', ['top'])

    op.create_table(
        'user_recommends',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('path', sa.String(length=2048), nullable=False, server_default='/'),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_recommends_user_id', 'user_recommends', ['user_id'], unique=True)
    # varchar_pattern_ops serves LIKE 'prefix%' subtree queries
    op.create_index(
        'ix_user_recommends_path',
        'user_recommends',
        ['path'],
        postgresql_ops={'path': 'varchar_pattern_ops'},
    )

    op.create_table(
        'user_areas',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('self_amount', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('level', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('amount >= 0', name='check_user_area_amount_non_negative'),
        sa.CheckConstraint(
            'self_amount >= 0', name='check_user_area_self_amount_non_negative'
        ),
        sa.CheckConstraint('level >= 0', name='check_user_area_level_non_negative'),
    )
    op.create_index('ix_user_areas_user_id', 'user_areas', ['user_id'], unique=True)

    op.create_table(
        'user_infos',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('vip', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lock_vip', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('history_recommend', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('team_csd_balance', sa.BigInteger(), nullable=False, server_default='0'),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('vip >= 0 AND vip <= 6', name='check_user_info_vip_range'),
    )
    op.create_index('ix_user_infos_user_id', 'user_infos', ['user_id'], unique=True)

    op.create_table(
        'user_balances',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('balance_usdt', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('balance_dhb', sa.BigInteger(), nullable=False, server_default='0'),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            'balance_usdt >= 0', name='check_user_balance_usdt_non_negative'
        ),
        sa.CheckConstraint(
            'balance_dhb >= 0', name='check_user_balance_dhb_non_negative'
        ),
    )
    op.create_index('ix_user_balances_user_id', 'user_balances', ['user_id'], unique=True)

    op.create_table(
        'rewards',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('amount_b', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('type_record_id', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('reason', sa.String(length=40), nullable=False),
        sa.Column('reason_location_id', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('level', sa.Integer(), nullable=False, server_default='0'),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_rewards_user_id', 'rewards', ['user_id'])
    op.create_index('ix_rewards_created_at', 'rewards', ['created_at'])
    op.create_index('idx_reward_user_reason', 'rewards', ['user_id', 'reason'])
    op.create_index('idx_reward_type_record', 'rewards', ['type', 'type_record_id'])

    op.create_table(
        'config',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('value', sa.String(length=255), nullable=False, server_default='0'),
        _timestamp('updated_at'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_config_key', 'config', ['key'], unique=True)

    op.create_table(
        'price_changes',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('origin', sa.BigInteger(), nullable=False),
        sa.Column('price', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.Integer(), nullable=False, server_default='0'),
        _timestamp('created_at'),
        _timestamp('processed_at', nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_price_changes_status', 'price_changes', ['status'])

    op.create_table(
        'trades',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('amount_csd', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('amount_hbs', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='default'),
        _timestamp('created_at'),
        _timestamp('settled_at', nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_trades_user_id', 'trades', ['user_id'])
    op.create_index('ix_trades_status', 'trades', ['status'])


def downgrade() -> None:
    """Drop every ledger table."""
    for table in (
        'trades',
        'price_changes',
        'config',
        'rewards',
        'user_balances',
        'user_infos',
        'user_areas',
        'user_recommends',
        'locations',
    ):
        op.drop_table(table)
