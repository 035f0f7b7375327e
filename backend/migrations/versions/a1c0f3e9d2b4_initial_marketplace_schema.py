"""initial marketplace schema

Revision ID: a1c0f3e9d2b4
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1c0f3e9d2b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users'))
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=True)

    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(length=120), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('company', sa.String(length=120), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_profiles_user_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_profiles'))
    )
    with op.batch_alter_table('profiles', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_profiles_user_id'), ['user_id'], unique=True)

    op.create_table(
        'automations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category_json', sa.Text(), nullable=False),
        sa.Column('platforms_json', sa.Text(), nullable=False),
        sa.Column('features_json', sa.Text(), nullable=False),
        sa.Column('requirements_json', sa.Text(), nullable=False),
        sa.Column('media_json', sa.Text(), nullable=True),
        sa.Column('cost', sa.Float(), nullable=False),
        sa.Column('suggested_price', sa.Float(), nullable=False),
        sa.Column('profit', sa.Float(), nullable=False),
        sa.Column('margin', sa.Float(), nullable=False),
        sa.Column('rating', sa.Float(), nullable=False),
        sa.Column('reviews_count', sa.Integer(), nullable=False),
        sa.Column('complexity', sa.String(length=32), nullable=True),
        sa.Column('setup_time', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('assigned_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['assigned_user_id'], ['users.id'], name=op.f('fk_automations_assigned_user_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_automations'))
    )
    with op.batch_alter_table('automations', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_automations_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_automations_assigned_user_id'), ['assigned_user_id'], unique=False)

    op.create_table(
        'user_automations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('automation_id', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('automation_title', sa.String(length=200), nullable=False),
        sa.Column('automation_cost', sa.Float(), nullable=False),
        sa.Column('automation_suggested_price', sa.Float(), nullable=False),
        sa.Column('automation_category', sa.String(length=120), nullable=True),
        sa.Column('added_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['automation_id'], ['automations.id'], name=op.f('fk_user_automations_automation_id_automations')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_user_automations_user_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_user_automations')),
        sa.UniqueConstraint('user_id', 'automation_id', name='uq_user_automations_user_automation')
    )
    with op.batch_alter_table('user_automations', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_user_automations_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_user_automations_automation_id'), ['automation_id'], unique=False)

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('client_name', sa.String(length=120), nullable=False),
        sa.Column('client_email', sa.String(length=255), nullable=False),
        sa.Column('client_phone', sa.String(length=32), nullable=False),
        sa.Column('company_name', sa.String(length=120), nullable=False),
        sa.Column('industry', sa.String(length=120), nullable=False),
        sa.Column('website_url', sa.String(length=500), nullable=True),
        sa.Column('instagram_handle', sa.String(length=64), nullable=True),
        sa.Column('facebook_page', sa.String(length=64), nullable=True),
        sa.Column('twitter_handle', sa.String(length=64), nullable=True),
        sa.Column('linkedin_profile', sa.String(length=64), nullable=True),
        sa.Column('automation_id', sa.Integer(), nullable=False),
        sa.Column('automation_title', sa.String(length=200), nullable=False),
        sa.Column('automation_category', sa.String(length=120), nullable=True),
        sa.Column('automation_cost', sa.Float(), nullable=False),
        sa.Column('automation_price_amount', sa.Float(), nullable=False),
        sa.Column('automation_price_currency', sa.String(length=8), nullable=False),
        sa.Column('automation_price_period', sa.String(length=16), nullable=False),
        sa.Column('agreed_price_amount', sa.Float(), nullable=False),
        sa.Column('agreed_price_currency', sa.String(length=8), nullable=False),
        sa.Column('agreed_price_period', sa.String(length=16), nullable=False),
        sa.Column('payment_format', sa.String(length=16), nullable=False),
        sa.Column('project_description', sa.Text(), nullable=False),
        sa.Column('special_requirements', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=40), nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('meeting_date', sa.String(length=200), nullable=False),
        sa.Column('estimated_completion_date', sa.String(length=32), nullable=True),
        sa.Column('actual_completion_date', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['automation_id'], ['automations.id'], name=op.f('fk_orders_automation_id_automations')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_orders_user_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_orders'))
    )
    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_orders_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_orders_automation_id'), ['automation_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_orders_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_orders_created_at'), ['created_at'], unique=False)

    op.create_table(
        'order_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('actor_user_id', sa.Integer(), nullable=True),
        sa.Column('event', sa.String(length=64), nullable=False),
        sa.Column('from_status', sa.String(length=40), nullable=True),
        sa.Column('to_status', sa.String(length=40), nullable=True),
        sa.Column('note', sa.String(length=250), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['actor_user_id'], ['users.id'], name=op.f('fk_order_events_actor_user_id_users')),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], name=op.f('fk_order_events_order_id_orders')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_order_events'))
    )
    with op.batch_alter_table('order_events', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_order_events_order_id'), ['order_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_order_events_actor_user_id'), ['actor_user_id'], unique=False)

    op.create_table(
        'order_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('transaction_type', sa.String(length=32), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('description', sa.String(length=240), nullable=True),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], name=op.f('fk_order_transactions_order_id_orders')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_order_transactions_user_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_order_transactions'))
    )
    with op.batch_alter_table('order_transactions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_order_transactions_order_id'), ['order_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_order_transactions_user_id'), ['user_id'], unique=False)

    op.create_table(
        'order_ledger_generations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('selling_price', sa.Float(), nullable=False),
        sa.Column('automation_cost', sa.Float(), nullable=False),
        sa.Column('payment_format', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], name=op.f('fk_order_ledger_generations_order_id_orders')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_order_ledger_generations'))
    )
    with op.batch_alter_table('order_ledger_generations', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_order_ledger_generations_order_id'), ['order_id'], unique=True)

    op.create_table(
        'wallets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('balance', sa.Float(), nullable=False),
        sa.Column('total_earned', sa.Float(), nullable=False),
        sa.Column('total_withdrawn', sa.Float(), nullable=False),
        sa.Column('available_for_withdrawal', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_wallets_user_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_wallets'))
    )
    with op.batch_alter_table('wallets', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_wallets_user_id'), ['user_id'], unique=True)

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=True),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('description', sa.String(length=240), nullable=True),
        sa.Column('reference', sa.String(length=160), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], name=op.f('fk_transactions_order_id_orders')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_transactions_user_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_transactions'))
    )
    with op.batch_alter_table('transactions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_transactions_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_transactions_order_id'), ['order_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_transactions_reference'), ['reference'], unique=True)
        batch_op.create_index(batch_op.f('ix_transactions_created_at'), ['created_at'], unique=False)

    op.create_table(
        'custom_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('requirements', sa.Text(), nullable=True),
        sa.Column('budget_range', sa.String(length=64), nullable=True),
        sa.Column('priority', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('estimated_cost', sa.Float(), nullable=True),
        sa.Column('estimated_delivery', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_custom_requests_user_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_custom_requests'))
    )
    with op.batch_alter_table('custom_requests', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_custom_requests_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_custom_requests_status'), ['status'], unique=False)

    op.create_table(
        'support_tickets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('subject', sa.String(length=140), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('priority', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_support_tickets_user_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_support_tickets'))
    )
    with op.batch_alter_table('support_tickets', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_support_tickets_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_support_tickets_status'), ['status'], unique=False)

    op.create_table(
        'support_messages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('ticket_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['ticket_id'], ['support_tickets.id'], name=op.f('fk_support_messages_ticket_id_support_tickets')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_support_messages_user_id_users')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_support_messages'))
    )
    with op.batch_alter_table('support_messages', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_support_messages_ticket_id'), ['ticket_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_support_messages_created_at'), ['created_at'], unique=False)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('actor_user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('target_type', sa.String(length=64), nullable=True),
        sa.Column('target_id', sa.Integer(), nullable=True),
        sa.Column('meta', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_audit_logs'))
    )

    op.create_table(
        'idempotency_keys',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('route', sa.String(length=128), nullable=False),
        sa.Column('request_hash', sa.String(length=64), nullable=False),
        sa.Column('response_json', sa.Text(), nullable=True),
        sa.Column('status_code', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_idempotency_keys')),
        sa.UniqueConstraint('key', name=op.f('uq_idempotency_keys_key'))
    )

    op.create_table(
        'security_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event', sa.String(length=64), nullable=False),
        sa.Column('event_timestamp', sa.String(length=64), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('url', sa.String(length=500), nullable=True),
        sa.Column('session_id', sa.String(length=128), nullable=True),
        sa.Column('client_ip', sa.String(length=64), nullable=True),
        sa.Column('risk_score', sa.Integer(), nullable=False),
        sa.Column('alert_level', sa.String(length=8), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_security_logs'))
    )
    with op.batch_alter_table('security_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_security_logs_event'), ['event'], unique=False)
        batch_op.create_index(batch_op.f('ix_security_logs_alert_level'), ['alert_level'], unique=False)


def downgrade():
    with op.batch_alter_table('security_logs', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_security_logs_alert_level'))
        batch_op.drop_index(batch_op.f('ix_security_logs_event'))
    op.drop_table('security_logs')

    op.drop_table('idempotency_keys')
    op.drop_table('audit_logs')

    with op.batch_alter_table('support_messages', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_support_messages_created_at'))
        batch_op.drop_index(batch_op.f('ix_support_messages_ticket_id'))
    op.drop_table('support_messages')

    with op.batch_alter_table('support_tickets', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_support_tickets_status'))
        batch_op.drop_index(batch_op.f('ix_support_tickets_user_id'))
    op.drop_table('support_tickets')

    with op.batch_alter_table('custom_requests', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_custom_requests_status'))
        batch_op.drop_index(batch_op.f('ix_custom_requests_user_id'))
    op.drop_table('custom_requests')

    with op.batch_alter_table('transactions', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_transactions_created_at'))
        batch_op.drop_index(batch_op.f('ix_transactions_reference'))
        batch_op.drop_index(batch_op.f('ix_transactions_order_id'))
        batch_op.drop_index(batch_op.f('ix_transactions_user_id'))
    op.drop_table('transactions')

    with op.batch_alter_table('wallets', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_wallets_user_id'))
    op.drop_table('wallets')

    with op.batch_alter_table('order_ledger_generations', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_order_ledger_generations_order_id'))
    op.drop_table('order_ledger_generations')

    with op.batch_alter_table('order_transactions', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_order_transactions_user_id'))
        batch_op.drop_index(batch_op.f('ix_order_transactions_order_id'))
    op.drop_table('order_transactions')

    with op.batch_alter_table('order_events', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_order_events_actor_user_id'))
        batch_op.drop_index(batch_op.f('ix_order_events_order_id'))
    op.drop_table('order_events')

    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_orders_created_at'))
        batch_op.drop_index(batch_op.f('ix_orders_status'))
        batch_op.drop_index(batch_op.f('ix_orders_automation_id'))
        batch_op.drop_index(batch_op.f('ix_orders_user_id'))
    op.drop_table('orders')

    with op.batch_alter_table('user_automations', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_user_automations_automation_id'))
        batch_op.drop_index(batch_op.f('ix_user_automations_user_id'))
    op.drop_table('user_automations')

    with op.batch_alter_table('automations', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_automations_assigned_user_id'))
        batch_op.drop_index(batch_op.f('ix_automations_status'))
    op.drop_table('automations')

    with op.batch_alter_table('profiles', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_profiles_user_id'))
    op.drop_table('profiles')

    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_users_email'))
    op.drop_table('users')
