"""create_employee_group_tables

Revision ID: 4b7d2e91c0a3
Revises:
Create Date: 2026-03-09 10:42:17.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4b7d2e91c0a3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create organizations, employee_groups and employee_group_members.

    ``profiles`` is owned by Supabase auth sync; only the organization link
    and role columns this service reads are added to it.
    """
    op.create_table('organizations',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug', name='uq_organizations_slug'),
    )

    op.execute("ALTER TABLE profiles ADD COLUMN IF NOT EXISTS org_id UUID;")
    op.execute("ALTER TABLE profiles ADD COLUMN IF NOT EXISTS role VARCHAR(50);")
    op.execute("ALTER TABLE profiles ADD COLUMN IF NOT EXISTS membership_status VARCHAR(50);")
    op.create_foreign_key(
        'fk_profiles_org_id', 'profiles', 'organizations',
        ['org_id'], ['id'], ondelete='SET NULL',
    )
    op.create_index('ix_profiles_org_id', 'profiles', ['org_id'], unique=False)

    op.create_table('employee_groups',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('org_id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('is_dynamic', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('dynamic_type', sa.String(length=50), nullable=True),
        sa.Column('criteria', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('last_computed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "(is_dynamic AND dynamic_type IS NOT NULL AND criteria IS NOT NULL) "
            "OR (NOT is_dynamic AND dynamic_type IS NULL AND criteria IS NULL)",
            name='ck_employee_groups_dynamic_fields',
        ),
        sa.CheckConstraint(
            "dynamic_type IS NULL OR dynamic_type IN "
            "('recent_logins', 'no_logins', 'most_active', 'top_learners', 'most_talkative')",
            name='ck_employee_groups_dynamic_type',
        ),
        sa.ForeignKeyConstraint(['org_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_employee_groups_org_id', 'employee_groups', ['org_id'], unique=False)

    op.create_table('employee_group_members',
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('added_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['group_id'], ['employee_groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('group_id', 'user_id'),
    )
    op.create_index(
        'ix_employee_group_members_user_id', 'employee_group_members', ['user_id'], unique=False
    )


def downgrade() -> None:
    """Drop employee group tables and the profile organization link."""
    op.drop_index('ix_employee_group_members_user_id', table_name='employee_group_members')
    op.drop_table('employee_group_members')
    op.drop_index('ix_employee_groups_org_id', table_name='employee_groups')
    op.drop_table('employee_groups')
    op.drop_index('ix_profiles_org_id', table_name='profiles')
    op.drop_constraint('fk_profiles_org_id', 'profiles', type_='foreignkey')
    op.drop_table('organizations')
