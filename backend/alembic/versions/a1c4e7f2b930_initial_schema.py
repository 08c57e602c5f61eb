"""initial schema: users, payments, catalogs, guns

Revision ID: a1c4e7f2b930
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1c4e7f2b930'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('confirmed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('confirm_token', sa.String(64), nullable=True),
        sa.Column('confirm_token_expiry', sa.DateTime(), nullable=True),
        sa.Column('recover_token', sa.String(64), nullable=True),
        sa.Column('recover_token_expiry', sa.DateTime(), nullable=True),
        sa.Column('attempt_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_attempt', sa.DateTime(), nullable=True),
        sa.Column('subscription_tier', sa.String(32), nullable=False, server_default='free'),
        sa.Column('subscription_expires_at', sa.DateTime(), nullable=True),
        sa.Column('subscription_canceled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('stripe_customer_id', sa.String(255), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(255), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_confirm_token', 'users', ['confirm_token'])
    op.create_index('ix_users_recover_token', 'users', ['recover_token'])
    op.create_index('ix_users_stripe_customer_id', 'users', ['stripe_customer_id'])
    op.create_index('ix_users_stripe_subscription_id', 'users', ['stripe_subscription_id'])
    op.create_index('ix_users_deleted_at', 'users', ['deleted_at'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False, comment='minor units'),
        sa.Column('currency', sa.String(3), nullable=False, server_default='usd'),
        sa.Column('status', sa.String(16), nullable=False, server_default='succeeded',
                  comment='pending / succeeded / failed / refunded'),
        sa.Column('description', sa.String(255), nullable=False),
        sa.Column('processor_payment_id', sa.String(255), nullable=False, comment='logical purchase identity'),
        sa.Column('processor_subscription_id', sa.String(255), nullable=True),
        sa.Column('is_renewal', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('tier', sa.String(32), nullable=False),
        sa.Column('period_start', sa.DateTime(), nullable=True),
        sa.Column('period_end', sa.DateTime(), nullable=True, comment='NULL for lifetime tiers'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payments_user_id', 'payments', ['user_id'])
    op.create_index('ix_payments_processor_subscription_id', 'payments', ['processor_subscription_id'])
    op.create_index(
        'ux_payments_user_processor_payment', 'payments', ['user_id', 'processor_payment_id'], unique=True
    )

    op.create_table(
        'weapon_types',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('type', sa.String(100), nullable=False),
        sa.Column('nickname', sa.String(100), nullable=True),
        sa.Column('popularity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('type'),
    )
    op.create_index('ix_weapon_types_deleted_at', 'weapon_types', ['deleted_at'])

    op.create_table(
        'calibers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('caliber', sa.String(100), nullable=False),
        sa.Column('nickname', sa.String(100), nullable=True),
        sa.Column('popularity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('caliber'),
    )
    op.create_index('ix_calibers_deleted_at', 'calibers', ['deleted_at'])

    op.create_table(
        'manufacturers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('nickname', sa.String(100), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
        sa.Column('popularity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index('ix_manufacturers_deleted_at', 'manufacturers', ['deleted_at'])

    op.create_table(
        'guns',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('acquired', sa.Date(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('weapon_type_id', sa.Integer(), nullable=False),
        sa.Column('caliber_id', sa.Integer(), nullable=False),
        sa.Column('manufacturer_id', sa.Integer(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['weapon_type_id'], ['weapon_types.id']),
        sa.ForeignKeyConstraint(['caliber_id'], ['calibers.id']),
        sa.ForeignKeyConstraint(['manufacturer_id'], ['manufacturers.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_guns_owner_id', 'guns', ['owner_id'])
    op.create_index('ix_guns_deleted_at', 'guns', ['deleted_at'])


def downgrade() -> None:
    op.drop_table('guns')
    op.drop_table('manufacturers')
    op.drop_table('calibers')
    op.drop_table('weapon_types')
    op.drop_table('payments')
    op.drop_table('users')
