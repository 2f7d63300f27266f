"""Initial schema: stores, registers, users, sessions, daily operations, closures

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

This migration adds:
1. Stores and cash registers (with cashier assignments)
2. Users, extra permission grants and session tokens
3. Daily incomes and expenses
4. Daily closures, unique per store, date and shift
5. Security events and stored settings sections
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. STORES AND CASH REGISTERS
    # ==========================================================================
    op.create_table('stores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('location', sa.String(length=120), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('manager_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('opening_hours', sa.String(length=255), nullable=True),
        sa.Column('tax_id', sa.String(length=32), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_stores_name'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('stores', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_stores_manager_id'), ['manager_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_stores_is_active'), ['is_active'], unique=False)

    op.create_table('cash_registers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'name', name='uq_cash_registers_store_name'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('cash_registers', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_cash_registers_store_id'), ['store_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_cash_registers_is_active'), ['is_active'], unique=False)

    # ==========================================================================
    # 2. USERS, PERMISSION GRANTS AND SESSIONS
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('assigned_store_id', sa.Integer(), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['assigned_store_id'], ['stores.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=False)
        batch_op.create_index(batch_op.f('ix_users_role'), ['role'], unique=False)
        batch_op.create_index(batch_op.f('ix_users_assigned_store_id'), ['assigned_store_id'], unique=False)

    op.create_table('cash_register_users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cash_register_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('assigned_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['cash_register_id'], ['cash_registers.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('cash_register_id', 'user_id', name='uq_cash_register_users'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('cash_register_users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_cash_register_users_cash_register_id'), ['cash_register_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_cash_register_users_user_id'), ['user_id'], unique=False)

    op.create_table('user_permission_grants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('permission_code', sa.String(length=64), nullable=False),
        sa.Column('granted_by_user_id', sa.Integer(), nullable=True),
        sa.Column('granted_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['granted_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'permission_code', name='uq_user_permission_grant'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('user_permission_grants', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_user_permission_grants_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_user_permission_grants_permission_code'), ['permission_code'], unique=False)

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_session_tokens_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_token_hash'), ['token_hash'], unique=True)
        batch_op.create_index(batch_op.f('ix_session_tokens_expires_at'), ['expires_at'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_is_revoked'), ['is_revoked'], unique=False)
        batch_op.create_index('ix_session_tokens_user_active', ['user_id', 'is_revoked'], unique=False)

    # ==========================================================================
    # 3. DAILY INCOMES AND EXPENSES
    # ==========================================================================
    op.create_table('daily_incomes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('cash_register_id', sa.Integer(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('amount_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('payment_method', sa.String(length=32), nullable=False),
        sa.Column('payment_details', sa.String(length=255), nullable=True),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('is_opening', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('bcv_rate', sa.Float(), nullable=False),
        sa.Column('amount_bs', sa.Float(), nullable=False, server_default='0'),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['cash_register_id'], ['cash_registers.id'], ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('daily_incomes', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_daily_incomes_store_id'), ['store_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_daily_incomes_cash_register_id'), ['cash_register_id'], unique=False)
        batch_op.create_index('ix_daily_incomes_store_date', ['store_id', 'date'], unique=False)

    op.create_table('daily_expenses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('cash_register_id', sa.Integer(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('amount_bs', sa.Float(), nullable=False, server_default='0'),
        sa.Column('amount_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('payment_source', sa.String(length=32), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('bcv_rate', sa.Float(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['cash_register_id'], ['cash_registers.id'], ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('daily_expenses', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_daily_expenses_store_id'), ['store_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_daily_expenses_cash_register_id'), ['cash_register_id'], unique=False)
        batch_op.create_index('ix_daily_expenses_store_date', ['store_id', 'date'], unique=False)

    # ==========================================================================
    # 4. DAILY CLOSURES
    # ==========================================================================
    op.create_table('closures',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('cash_register_id', sa.Integer(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('bcv_rate', sa.Float(), nullable=False),
        sa.Column('shift_name', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('total_cash_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_zelle_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_mobile_payment_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_pdv_banesco_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_cashea_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('declared_cash_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('declared_zelle_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('declared_mobile_payment_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('declared_pdv_banesco_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('declared_cashea_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('observations', sa.Text(), nullable=False, server_default=''),
        sa.Column('surplus_notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('petty_cash_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('stored_cash_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('opening_total_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('calculated_total_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('declared_total_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('difference_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_expenses_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('net_profit_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ),
        sa.ForeignKeyConstraint(['cash_register_id'], ['cash_registers.id'], ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'date', 'shift_name', name='uq_closures_store_date_shift'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('closures', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_closures_store_id'), ['store_id'], unique=False)
        batch_op.create_index('ix_closures_date', ['date'], unique=False)

    # ==========================================================================
    # 5. SECURITY EVENTS AND SETTINGS
    # ==========================================================================
    op.create_table('security_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('resource', sa.String(length=128), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('security_events', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_security_events_store_id'), ['store_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_security_events_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_security_events_event_type'), ['event_type'], unique=False)
        batch_op.create_index(batch_op.f('ix_security_events_success'), ['success'], unique=False)
        batch_op.create_index(batch_op.f('ix_security_events_occurred_at'), ['occurred_at'], unique=False)
        batch_op.create_index('ix_security_events_user_type', ['user_id', 'event_type'], unique=False)

    op.create_table('system_settings',
        sa.Column('section', sa.String(length=32), nullable=False),
        sa.Column('value_json', sa.JSON(), nullable=False),
        sa.Column('updated_by_user_id', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['updated_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('section')
    )


def downgrade():
    op.drop_table('system_settings')
    with op.batch_alter_table('security_events', schema=None) as batch_op:
        batch_op.drop_index('ix_security_events_user_type')
    op.drop_table('security_events')
    op.drop_table('closures')
    op.drop_table('daily_expenses')
    op.drop_table('daily_incomes')
    op.drop_table('session_tokens')
    op.drop_table('user_permission_grants')
    op.drop_table('cash_register_users')
    op.drop_table('users')
    op.drop_table('cash_registers')
    op.drop_table('stores')
