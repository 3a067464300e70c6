"""Initial schema: organizations, staff, catalog, quotations, calendar, dossiers

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-03-01

Note: organizations use UUID keys; every other table uses integer keys.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _org_fk():
    return sa.Column(
        'organization_id',
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey('organizations.id', ondelete='CASCADE'),
        nullable=False,
        index=True,
    )


def upgrade():
    """Create all tables."""
    op.create_table(
        'organizations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False, unique=True, index=True),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('address', sa.Text()),
        sa.Column('website', sa.String(255)),
        sa.Column('vat_number', sa.String(50)),
        sa.Column('kvk_number', sa.String(50)),
        sa.Column('iban', sa.String(50)),
        sa.Column('currency', sa.String(3), nullable=False, server_default='EUR'),
        sa.Column('primary_color', sa.String(20)),
        sa.Column('quote_footer', sa.Text()),
        sa.Column('terms_conditions', sa.Text()),
        # Invoice numbering
        sa.Column('invoice_prefix', sa.String(20), nullable=False, server_default='INV'),
        sa.Column('invoice_counter', sa.Integer(), nullable=False, server_default='1000'),
        sa.Column('default_vat_rate', sa.Numeric(5, 2), nullable=False, server_default='21'),
        sa.Column('opening_hours', sa.JSON(), nullable=False),
        sa.Column('max_employees', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        _org_fk(),
        sa.Column('email', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(200)),
        sa.Column('phone', sa.String(50)),
        sa.Column('role', sa.String(20), nullable=False, server_default='owner'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'price_matrix_items',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        _org_fk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('category', sa.String(100)),
        sa.Column('unit', sa.String(50), nullable=False, server_default='stuk'),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('is_optional', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column(
            'depends_on_item_id', sa.Integer(),
            sa.ForeignKey('price_matrix_items.id', ondelete='SET NULL'),
        ),
        sa.Column('depends_on_condition', sa.String(30), nullable=False, server_default='always'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'quotations',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        _org_fk(),
        sa.Column('token', sa.String(64), nullable=False, unique=True, index=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='new_lead', index=True),
        # Client
        sa.Column('client_name', sa.String(255), nullable=False),
        sa.Column('client_email', sa.String(255), nullable=False),
        sa.Column('client_phone', sa.String(50)),
        sa.Column('client_company', sa.String(255)),
        sa.Column('client_address', sa.Text()),
        # Financials
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('discount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('vat_rate', sa.Numeric(5, 2), nullable=False, server_default='21'),
        sa.Column('vat_amount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('include_vat', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('desired_start_date', sa.Date()),
        sa.Column('desired_start_time', sa.Time()),
        sa.Column('notes', sa.Text()),
        sa.Column('valid_until', sa.Date()),
        # Client decision
        sa.Column('signature', sa.Text()),
        sa.Column('signed_at', sa.DateTime(timezone=True)),
        sa.Column('rejection_reason', sa.Text()),
        # Invoicing
        sa.Column('invoice_number', sa.String(50), index=True),
        sa.Column('invoice_notes', sa.Text()),
        sa.Column(
            'assigned_employee_id', sa.Integer(),
            sa.ForeignKey('users.id', ondelete='SET NULL'), index=True,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
    )
    op.create_index('idx_quotations_org_status', 'quotations', ['organization_id', 'status'])

    op.create_table(
        'quote_items',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column(
            'quotation_id', sa.Integer(),
            sa.ForeignKey('quotations.id', ondelete='CASCADE'), nullable=False, index=True,
        ),
        sa.Column('price_matrix_item_id', sa.Integer()),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('quantity', sa.Numeric(10, 2), nullable=False, server_default='1'),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('unit', sa.String(50)),
        sa.Column('is_optional', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_selected', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('total', sa.Numeric(10, 2), nullable=False, server_default='0'),
    )

    op.create_table(
        'quotation_audit_log',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'quotation_id', sa.Integer(),
            sa.ForeignKey('quotations.id', ondelete='CASCADE'), nullable=False, index=True,
        ),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('context', sa.JSON(), nullable=False),
    )

    op.create_table(
        'calendar_events',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        _org_fk(),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time()),
        sa.Column('end_time', sa.Time()),
        sa.Column('type', sa.String(20), nullable=False, server_default='unavailable'),
        sa.Column('title', sa.String(255)),
        sa.Column('notes', sa.Text()),
        sa.Column(
            'quotation_id', sa.Integer(),
            sa.ForeignKey('quotations.id', ondelete='SET NULL'), index=True,
        ),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_calendar_events_org_date', 'calendar_events', ['organization_id', 'date'])

    op.create_table(
        'client_users',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        _org_fk(),
        sa.Column('quotation_id', sa.Integer(), sa.ForeignKey('quotations.id', ondelete='SET NULL')),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50)),
        sa.Column('company', sa.String(255)),
        sa.Column('login_token', sa.String(64), nullable=False, unique=True, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('organization_id', 'email', name='uq_client_users_org_email'),
    )

    op.create_table(
        'dossiers',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        _org_fk(),
        sa.Column(
            'quotation_id', sa.Integer(),
            sa.ForeignKey('quotations.id', ondelete='CASCADE'), nullable=False, unique=True,
        ),
        sa.Column(
            'client_user_id', sa.Integer(),
            sa.ForeignKey('client_users.id', ondelete='SET NULL'), index=True,
        ),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='open'),
        sa.Column(
            'assigned_employee_id', sa.Integer(),
            sa.ForeignKey('users.id', ondelete='SET NULL'), index=True,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
    )

    dossier_fk = dict(nullable=False, index=True)
    op.create_table(
        'dossier_entries',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('dossier_id', sa.Integer(), sa.ForeignKey('dossiers.id', ondelete='CASCADE'), **dossier_fk),
        sa.Column('type', sa.String(20), nullable=False, server_default='note'),
        sa.Column('content', sa.Text()),
        sa.Column('file_path', sa.String(500)),
        sa.Column('caption', sa.Text()),
        sa.Column('created_by', sa.String(20), nullable=False, server_default='tenant'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'dossier_messages',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('dossier_id', sa.Integer(), sa.ForeignKey('dossiers.id', ondelete='CASCADE'), **dossier_fk),
        sa.Column('sender_type', sa.String(20), nullable=False),
        sa.Column('sender_name', sa.String(255)),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('file_path', sa.String(500)),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'dossier_signatures',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column(
            'dossier_id', sa.Integer(),
            sa.ForeignKey('dossiers.id', ondelete='CASCADE'), nullable=False, unique=True,
        ),
        sa.Column('signature', sa.Text(), nullable=False),
        sa.Column('rating', sa.Integer()),
        sa.Column('feedback', sa.Text()),
        sa.Column('signed_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        _org_fk(),
        sa.Column('type', sa.String(50), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('related_id', sa.Integer()),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false(), index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True),
    )

    op.create_table(
        'form_templates',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        _org_fk(),
        sa.Column('title', sa.String(255), nullable=False, server_default='Offerte aanvragen'),
        sa.Column('subtitle', sa.Text()),
        sa.Column('submit_text', sa.String(100), nullable=False, server_default='Verstuur aanvraag'),
        sa.Column('success_message', sa.Text()),
        sa.Column('fields', sa.JSON(), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
    )


def downgrade():
    """Drop all tables in reverse dependency order."""
    for table in (
        'form_templates',
        'notifications',
        'dossier_signatures',
        'dossier_messages',
        'dossier_entries',
        'dossiers',
        'client_users',
        'calendar_events',
        'quotation_audit_log',
        'quote_items',
        'quotations',
        'price_matrix_items',
        'users',
        'organizations',
    ):
        op.drop_table(table)
