"""create users and auth_providers

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("display_name", sa.String(255)),
        sa.Column("avatar_url", sa.Text()),
        sa.Column("bio", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "auth_providers",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("provider", sa.String(64), nullable=False),
        sa.Column("provider_user_id", sa.String(255), nullable=False, server_default=""),
        sa.Column("provider_email", sa.String(320)),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "provider", name="uq_auth_providers_user_provider"),
    )
    op.create_index("ix_auth_providers_user_id", "auth_providers", ["user_id"])

    # (provider, provider_user_id) is unique only for real ids; '' rows are allowed to repeat
    op.create_index(
        "uq_auth_providers_provider_user_id",
        "auth_providers",
        ["provider", "provider_user_id"],
        unique=True,
        postgresql_where=sa.text("provider_user_id <> ''"),
        sqlite_where=sa.text("provider_user_id <> ''"),
    )


def downgrade() -> None:
    op.drop_index("uq_auth_providers_provider_user_id", table_name="auth_providers")
    op.drop_index("ix_auth_providers_user_id", table_name="auth_providers")
    op.drop_table("auth_providers")
    op.drop_table("users")
