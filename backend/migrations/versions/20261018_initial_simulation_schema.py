"""Initial simulation schema

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18

Creates:
1. users, training_tasks, student_progress, evaluation_records
2. suppliers, products
3. inventory_records (per user/task/product stock with weighted-average cost)
4. orders, order_lines, order_sequences
5. financial_records (append-only ledger)
6. market_data (one snapshot per category)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. USERS AND TASKS
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=True),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('student_number', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_username'), ['username'], unique=True)

    op.create_table('training_tasks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('initial_budget', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('duration_days', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('training_tasks', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_training_tasks_created_by'), ['created_by'], unique=False)

    op.create_table('student_progress',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('task_id', sa.Integer(), nullable=False),
        sa.Column('current_balance', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('current_day', sa.Integer(), nullable=False),
        sa.Column('inventory_value', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('total_revenue', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('total_profit', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('kpi_financial', sa.Integer(), nullable=False),
        sa.Column('kpi_operational', sa.Integer(), nullable=False),
        sa.Column('kpi_decision', sa.Integer(), nullable=False),
        sa.Column('kpi_learning', sa.Integer(), nullable=False),
        sa.Column('kpi_total', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['task_id'], ['training_tasks.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'task_id', name='uq_progress_user_task'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('student_progress', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_student_progress_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_student_progress_task_id'), ['task_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_student_progress_status'), ['status'], unique=False)

    op.create_table('evaluation_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('task_id', sa.Integer(), nullable=False),
        sa.Column('financial_score', sa.Integer(), nullable=False),
        sa.Column('operational_score', sa.Integer(), nullable=False),
        sa.Column('decision_score', sa.Integer(), nullable=False),
        sa.Column('learning_score', sa.Integer(), nullable=False),
        sa.Column('total_score', sa.Integer(), nullable=False),
        sa.Column('grade', sa.String(length=1), nullable=False),
        sa.Column('feedback', sa.Text(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['task_id'], ['training_tasks.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('evaluation_records', schema=None) as batch_op:
        batch_op.create_index('ix_evaluations_user_task', ['user_id', 'task_id'], unique=False)

    # ==========================================================================
    # 2. CATALOG
    # ==========================================================================
    op.create_table('suppliers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('categories', sa.JSON(), nullable=True),
        sa.Column('rating', sa.Numeric(precision=2, scale=1), nullable=False),
        sa.Column('reliability', sa.Integer(), nullable=False),
        sa.Column('quality_level', sa.String(length=16), nullable=False),
        sa.Column('cooperation_years', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )

    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('unit_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('safety_stock', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index('ix_products_category', ['category'], unique=False)

    # ==========================================================================
    # 3. INVENTORY
    # ==========================================================================
    op.create_table('inventory_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('task_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('current_stock', sa.Integer(), nullable=False),
        sa.Column('reserved_stock', sa.Integer(), nullable=False),
        sa.Column('average_unit_cost', sa.Numeric(precision=12, scale=4), nullable=False),
        sa.Column('last_updated', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.CheckConstraint('current_stock >= 0', name='ck_inventory_stock_non_negative'),
        sa.CheckConstraint('reserved_stock >= 0', name='ck_inventory_reserved_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['task_id'], ['training_tasks.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'task_id', 'product_id', name='uq_inventory_user_task_product'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('inventory_records', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_inventory_records_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_inventory_records_task_id'), ['task_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_inventory_records_product_id'), ['product_id'], unique=False)

    # ==========================================================================
    # 4. ORDERS
    # ==========================================================================
    op.create_table('orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_number', sa.String(length=50), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('task_id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=True),
        sa.Column('customer_name', sa.String(length=200), nullable=True),
        sa.Column('order_type', sa.String(length=16), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['task_id'], ['training_tasks.id'], ),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_orders_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_orders_task_id'), ['task_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_orders_supplier_id'), ['supplier_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_orders_status'), ['status'], unique=False)
        batch_op.create_index('ix_orders_user_task_status', ['user_id', 'task_id', 'status'], unique=False)

    op.create_table('order_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('line_total', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_order_lines_quantity_positive'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('order_lines', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_order_lines_order_id'), ['order_id'], unique=False)

    op.create_table('order_sequences',
        sa.Column('order_type', sa.String(length=16), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('order_type')
    )

    # ==========================================================================
    # 5. FINANCIAL LEDGER
    # ==========================================================================
    op.create_table('financial_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('task_id', sa.Integer(), nullable=False),
        sa.Column('record_type', sa.String(length=16), nullable=False),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=32), nullable=True),
        sa.Column('related_order_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.CheckConstraint('amount >= 0', name='ck_financial_amount_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['task_id'], ['training_tasks.id'], ),
        sa.ForeignKeyConstraint(['related_order_id'], ['orders.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('financial_records', schema=None) as batch_op:
        batch_op.create_index('ix_financial_user_task_type', ['user_id', 'task_id', 'record_type'], unique=False)
        batch_op.create_index(batch_op.f('ix_financial_records_related_order_id'), ['related_order_id'], unique=False)

    # ==========================================================================
    # 6. MARKET
    # ==========================================================================
    op.create_table('market_data',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('demand_level', sa.Integer(), nullable=False),
        sa.Column('competition_level', sa.Integer(), nullable=False),
        sa.Column('price_index', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('trend_direction', sa.String(length=16), nullable=False),
        sa.Column('market_events', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('category'),
        sqlite_autoincrement=True
    )


def downgrade():
    op.drop_table('market_data')
    with op.batch_alter_table('financial_records', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_financial_records_related_order_id'))
        batch_op.drop_index('ix_financial_user_task_type')
    op.drop_table('financial_records')
    op.drop_table('order_sequences')
    with op.batch_alter_table('order_lines', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_order_lines_order_id'))
    op.drop_table('order_lines')
    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.drop_index('ix_orders_user_task_status')
        batch_op.drop_index(batch_op.f('ix_orders_status'))
        batch_op.drop_index(batch_op.f('ix_orders_supplier_id'))
        batch_op.drop_index(batch_op.f('ix_orders_task_id'))
        batch_op.drop_index(batch_op.f('ix_orders_user_id'))
    op.drop_table('orders')
    with op.batch_alter_table('inventory_records', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_inventory_records_product_id'))
        batch_op.drop_index(batch_op.f('ix_inventory_records_task_id'))
        batch_op.drop_index(batch_op.f('ix_inventory_records_user_id'))
    op.drop_table('inventory_records')
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.drop_index('ix_products_category')
    op.drop_table('products')
    op.drop_table('suppliers')
    with op.batch_alter_table('evaluation_records', schema=None) as batch_op:
        batch_op.drop_index('ix_evaluations_user_task')
    op.drop_table('evaluation_records')
    with op.batch_alter_table('student_progress', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_student_progress_status'))
        batch_op.drop_index(batch_op.f('ix_student_progress_task_id'))
        batch_op.drop_index(batch_op.f('ix_student_progress_user_id'))
    op.drop_table('student_progress')
    with op.batch_alter_table('training_tasks', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_training_tasks_created_by'))
    op.drop_table('training_tasks')
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_users_username'))
    op.drop_table('users')
