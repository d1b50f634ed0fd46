"""create_member_lifecycle_tables

Revision ID: 3f2a9c1d7b40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

membership_scope_enum = sa.Enum(
    'global', 'association', 'club', 'team', name='membership_scope_enum'
)
billing_frequency_enum = sa.Enum(
    'one_time', 'annual', 'seasonal', name='billing_frequency_enum'
)


def upgrade() -> None:
    """Upgrade schema - Add membership catalog, member documents and history."""

    op.create_table(
        'membership_type_definitions',
        sa.Column('type_id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('scope', membership_scope_enum, nullable=False),
        sa.Column('scope_owner_id', sa.String(), nullable=True),
        sa.Column('min_age', sa.Integer(), nullable=True),
        sa.Column('max_age', sa.Integer(), nullable=True),
        sa.Column('base_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('frequency', billing_frequency_enum, nullable=False),
        sa.Column('additional_fees', JSONB(), nullable=False),
        sa.Column('requirements', ARRAY(sa.String()), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('usage_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('display_order', sa.Integer(), server_default='99', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "(scope = 'global') = (scope_owner_id IS NULL)",
            name='ck_membership_type_scope_owner',
        ),
        sa.CheckConstraint(
            'min_age IS NULL OR max_age IS NULL OR min_age <= max_age',
            name='ck_membership_type_age_bounds',
        ),
        sa.PrimaryKeyConstraint('type_id')
    )
    op.create_index(
        'ix_membership_type_scope_owner',
        'membership_type_definitions',
        ['scope', 'scope_owner_id'],
    )

    # Member documents
    op.create_table(
        'club_members',
        sa.Column('member_id', sa.String(), nullable=False),
        sa.Column('association_id', sa.String(), nullable=True),
        sa.Column('club_id', sa.String(), nullable=True),
        sa.Column('record', JSONB(), nullable=False),
        sa.Column('version', sa.Integer(), server_default='1', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('member_id')
    )
    op.create_index('ix_club_members_association_id', 'club_members', ['association_id'])
    op.create_index('ix_club_members_club_id', 'club_members', ['club_id'])

    # Append-only history
    op.create_table(
        'member_change_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('member_id', sa.String(), nullable=False),
        sa.Column('section', sa.String(), nullable=False),
        sa.Column('changes', JSONB(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
        sa.ForeignKeyConstraint(
            ['member_id'], ['club_members.member_id'], ondelete='RESTRICT'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_member_change_logs_member_id', 'member_change_logs', ['member_id'])
    op.create_index('ix_member_change_logs_timestamp', 'member_change_logs', ['timestamp'])

    op.create_table(
        'member_renewals',
        sa.Column('renewal_id', sa.String(), nullable=False),
        sa.Column('member_id', sa.String(), nullable=False),
        sa.Column('period_start', sa.Date(), nullable=False),
        sa.Column('period_end', sa.Date(), nullable=True),
        sa.Column('membership_type_id', sa.String(), nullable=False),
        sa.Column('fee', sa.Numeric(10, 2), nullable=False),
        sa.Column('notes', sa.Text(), nullable=False),
        sa.Column('renewal_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('renewed_by', sa.String(), nullable=True),
        sa.ForeignKeyConstraint(
            ['member_id'], ['club_members.member_id'], ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(
            ['membership_type_id'],
            ['membership_type_definitions.type_id'],
            ondelete='RESTRICT',
        ),
        sa.PrimaryKeyConstraint('renewal_id')
    )
    op.create_index('ix_member_renewals_member_id', 'member_renewals', ['member_id'])
    op.create_index('ix_member_renewals_renewal_date', 'member_renewals', ['renewal_date'])


def downgrade() -> None:
    """Downgrade schema - Drop member lifecycle tables."""
    op.drop_index('ix_member_renewals_renewal_date', table_name='member_renewals')
    op.drop_index('ix_member_renewals_member_id', table_name='member_renewals')
    op.drop_table('member_renewals')
    op.drop_index('ix_member_change_logs_timestamp', table_name='member_change_logs')
    op.drop_index('ix_member_change_logs_member_id', table_name='member_change_logs')
    op.drop_table('member_change_logs')
    op.drop_index('ix_club_members_club_id', table_name='club_members')
    op.drop_index('ix_club_members_association_id', table_name='club_members')
    op.drop_table('club_members')
    op.drop_index('ix_membership_type_scope_owner', table_name='membership_type_definitions')
    op.drop_table('membership_type_definitions')
    billing_frequency_enum.drop(op.get_bind(), checkfirst=True)
    membership_scope_enum.drop(op.get_bind(), checkfirst=True)
