"""Widget schema: companies, widgets, their review sources and RLS policies.

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""

from alembic import op

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None

# Tables reachable through company membership, in creation order
RLS_TABLES = ["users", "companies", "company_members", "widgets"]


def upgrade():
    # Empty app.user_id (system connections) maps to NULL instead of failing the cast
    op.execute("""
        CREATE OR REPLACE FUNCTION get_app_user_id() RETURNS uuid AS $$
        DECLARE
            val text;
        BEGIN
            val := current_setting('app.user_id', true);
            IF val IS NULL OR val = '' THEN
                RETURN NULL;
            END IF;
            RETURN val::uuid;
        END;
        $$ LANGUAGE plpgsql STABLE;
    """)

    op.execute("""
        CREATE TABLE users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            email TEXT UNIQUE NOT NULL,
            name TEXT,
            created_at TIMESTAMPTZ DEFAULT now()
        );
    """)

    op.execute("""
        CREATE TABLE companies (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name TEXT NOT NULL,
            created_at TIMESTAMPTZ DEFAULT now()
        );
    """)

    op.execute("""
        CREATE TABLE company_members (
            company_id UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            role TEXT NOT NULL DEFAULT 'member' CHECK (role IN ('owner', 'member')),
            created_at TIMESTAMPTZ DEFAULT now(),
            PRIMARY KEY (company_id, user_id)
        );
    """)
    op.execute("CREATE INDEX idx_company_members_user ON company_members(user_id);")

    op.execute("""
        CREATE TABLE widgets (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            company_id UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            type TEXT NOT NULL DEFAULT 'CAROUSEL',
            status TEXT NOT NULL DEFAULT 'DRAFT' CHECK (status IN ('DRAFT', 'PUBLISHED')),
            config_json JSONB NOT NULL DEFAULT '{}',
            published_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ DEFAULT now(),
            updated_at TIMESTAMPTZ DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX idx_widgets_company ON widgets(company_id, updated_at DESC);")

    op.execute("""
        CREATE TABLE widget_locations (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            widget_id UUID NOT NULL REFERENCES widgets(id) ON DELETE CASCADE,
            provider TEXT NOT NULL DEFAULT 'google',
            place_id TEXT NOT NULL,
            label TEXT,
            weight INTEGER NOT NULL DEFAULT 1,
            enabled BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ DEFAULT now(),
            UNIQUE (widget_id, place_id)
        );
    """)

    op.execute("""
        CREATE TABLE reviews (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            widget_location_id UUID NOT NULL REFERENCES widget_locations(id) ON DELETE CASCADE,
            provider TEXT NOT NULL,
            provider_review_id TEXT NOT NULL,
            author_name TEXT NOT NULL,
            author_avatar_url TEXT,
            rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
            text TEXT,
            language TEXT,
            review_url TEXT,
            review_created_at TIMESTAMPTZ NOT NULL,
            created_at TIMESTAMPTZ DEFAULT now(),
            UNIQUE (provider, provider_review_id)
        );
    """)
    op.execute("CREATE INDEX idx_reviews_location ON reviews(widget_location_id, review_created_at DESC);")

    op.execute("""
        CREATE TABLE review_overrides (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            review_id UUID UNIQUE NOT NULL REFERENCES reviews(id) ON DELETE CASCADE,
            hidden BOOLEAN NOT NULL DEFAULT false,
            pinned BOOLEAN NOT NULL DEFAULT false,
            custom_excerpt TEXT,
            tags JSONB NOT NULL DEFAULT '[]',
            notes TEXT,
            updated_at TIMESTAMPTZ DEFAULT now()
        );
    """)

    op.execute("""
        CREATE TABLE widget_summaries (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            widget_id UUID UNIQUE NOT NULL REFERENCES widgets(id) ON DELETE CASCADE,
            avg_rating NUMERIC(3, 2) NOT NULL,
            total_reviews INTEGER NOT NULL,
            last_synced_at TIMESTAMPTZ DEFAULT now()
        );
    """)

    # RLS: users see themselves, their memberships, and their companies' widgets.
    # Reviews and summaries are read on system connections only.
    for table in RLS_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY")

    op.execute("""
        CREATE POLICY users_own ON users
        FOR ALL
        USING (get_app_user_id() IS NULL OR id = get_app_user_id());
    """)

    op.execute("""
        CREATE POLICY company_members_own ON company_members
        FOR ALL
        USING (get_app_user_id() IS NULL OR user_id = get_app_user_id());
    """)

    op.execute("""
        CREATE POLICY companies_member ON companies
        FOR ALL
        USING (
            get_app_user_id() IS NULL
            OR id IN (SELECT company_id FROM company_members WHERE user_id = get_app_user_id())
        );
    """)

    op.execute("""
        CREATE POLICY widgets_member ON widgets
        FOR ALL
        USING (
            get_app_user_id() IS NULL
            OR company_id IN (SELECT company_id FROM company_members WHERE user_id = get_app_user_id())
        )
        WITH CHECK (
            get_app_user_id() IS NULL
            OR company_id IN (SELECT company_id FROM company_members WHERE user_id = get_app_user_id())
        );
    """)


def downgrade():
    op.execute("DROP TABLE IF EXISTS widget_summaries CASCADE")
    op.execute("DROP TABLE IF EXISTS review_overrides CASCADE")
    op.execute("DROP TABLE IF EXISTS reviews CASCADE")
    op.execute("DROP TABLE IF EXISTS widget_locations CASCADE")
    op.execute("DROP TABLE IF EXISTS widgets CASCADE")
    op.execute("DROP TABLE IF EXISTS company_members CASCADE")
    op.execute("DROP TABLE IF EXISTS companies CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
    op.execute("DROP FUNCTION IF EXISTS get_app_user_id()")
