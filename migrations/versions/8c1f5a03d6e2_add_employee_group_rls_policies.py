"""add_employee_group_rls_policies

Revision ID: 8c1f5a03d6e2
Revises: 4b7d2e91c0a3
Create Date: 2026-03-09 11:05:52.604117

"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8c1f5a03d6e2"
down_revision: str | Sequence[str] | None = "4b7d2e91c0a3"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Add Row Level Security policies for organization-scoped group tables.

    The API connects with a service role that bypasses RLS and enforces the
    same rules in the service layer. The policies cover direct Supabase
    client access from the admin console.
    """
    # SECURITY DEFINER helpers read profiles without triggering its own RLS.
    op.execute("""
        CREATE OR REPLACE FUNCTION get_user_org_id(uid UUID)
        RETURNS UUID
        LANGUAGE sql
        SECURITY DEFINER
        STABLE
        SET search_path = public
        AS $$
            SELECT org_id FROM profiles WHERE id = uid;
        $$;
    """)
    op.execute("""
        CREATE OR REPLACE FUNCTION is_org_admin(uid UUID, target_org UUID)
        RETURNS BOOLEAN
        LANGUAGE sql
        SECURITY DEFINER
        STABLE
        SET search_path = public
        AS $$
            SELECT EXISTS (
                SELECT 1 FROM profiles
                WHERE id = uid
                AND org_id = target_org
                AND (role IN ('admin', 'org_admin') OR membership_status = 'org_admin')
            );
        $$;
    """)

    for table in ["organizations", "employee_groups", "employee_group_members"]:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;")

    # --- Organizations ---
    op.execute("""
        CREATE POLICY organizations_select ON organizations
            FOR SELECT USING (
                id = get_user_org_id((SELECT auth.uid()))
            );
    """)

    # --- Employee groups: members read, admins write ---
    op.execute("""
        CREATE POLICY employee_groups_select ON employee_groups
            FOR SELECT USING (
                org_id = get_user_org_id((SELECT auth.uid()))
            );
    """)
    op.execute("""
        CREATE POLICY employee_groups_write ON employee_groups
            FOR ALL USING (
                is_org_admin((SELECT auth.uid()), org_id)
            ) WITH CHECK (
                is_org_admin((SELECT auth.uid()), org_id)
            );
    """)

    # --- Employee group members ---
    op.execute("""
        CREATE POLICY employee_group_members_select ON employee_group_members
            FOR SELECT USING (
                group_id IN (
                    SELECT id FROM employee_groups
                    WHERE org_id = get_user_org_id((SELECT auth.uid()))
                )
            );
    """)
    op.execute("""
        CREATE POLICY employee_group_members_write ON employee_group_members
            FOR ALL USING (
                group_id IN (
                    SELECT id FROM employee_groups
                    WHERE is_org_admin((SELECT auth.uid()), org_id)
                    AND NOT is_dynamic
                )
            ) WITH CHECK (
                group_id IN (
                    SELECT id FROM employee_groups
                    WHERE is_org_admin((SELECT auth.uid()), org_id)
                    AND NOT is_dynamic
                )
            );
    """)


def downgrade() -> None:
    """Drop group RLS policies and helper functions."""
    op.execute("DROP POLICY IF EXISTS employee_group_members_write ON employee_group_members;")
    op.execute("DROP POLICY IF EXISTS employee_group_members_select ON employee_group_members;")
    op.execute("DROP POLICY IF EXISTS employee_groups_write ON employee_groups;")
    op.execute("DROP POLICY IF EXISTS employee_groups_select ON employee_groups;")
    op.execute("DROP POLICY IF EXISTS organizations_select ON organizations;")

    for table in ["employee_group_members", "employee_groups", "organizations"]:
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY;")

    op.execute("DROP FUNCTION IF EXISTS is_org_admin(UUID, UUID);")
    op.execute("DROP FUNCTION IF EXISTS get_user_org_id(UUID);")
