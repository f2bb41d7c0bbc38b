"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17

Creates the users and oauth_tokens tables. Uniqueness of email, phone and
of the live token per user is enforced by partial indexes over rows whose
deleted_at is NULL.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_ROW = sa.text("deleted_at IS NULL")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("color_theme", sa.String(20), nullable=False, server_default="light"),
        sa.Column("lang", sa.String(10), nullable=False, server_default="en"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("uq_users_email_active", "users", ["email"], unique=True,
                    postgresql_where=ACTIVE_ROW, sqlite_where=ACTIVE_ROW)
    op.create_index("uq_users_phone_active", "users", ["phone"], unique=True,
                    postgresql_where=ACTIVE_ROW, sqlite_where=ACTIVE_ROW)

    # --- oauth_tokens ---
    op.create_table(
        "oauth_tokens",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_oauth_tokens_token", "oauth_tokens", ["token"])
    op.create_index("uq_oauth_tokens_user_active", "oauth_tokens", ["user_id"], unique=True,
                    postgresql_where=ACTIVE_ROW, sqlite_where=ACTIVE_ROW)


def downgrade() -> None:
    op.drop_index("uq_oauth_tokens_user_active", table_name="oauth_tokens")
    op.drop_index("ix_oauth_tokens_token", table_name="oauth_tokens")
    op.drop_table("oauth_tokens")
    op.drop_index("uq_users_phone_active", table_name="users")
    op.drop_index("uq_users_email_active", table_name="users")
    op.drop_table("users")
