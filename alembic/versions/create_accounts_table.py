"""create accounts table

Revision ID: 3b1f7c2a9d40
Revises:
Create Date: 2026-10-18 17:40:12.418305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b1f7c2a9d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


account_role = sa.Enum("user", "admin", "moderator", name="account_role")
account_status = sa.Enum("inactive", "active", "suspended", name="account_status")


def upgrade():
    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=50), nullable=True),
        sa.Column("last_name", sa.String(length=50), nullable=True),
        sa.Column("role", account_role, nullable=False, server_default="user"),
        sa.Column("status", account_status, nullable=False, server_default="inactive"),
        sa.Column("is_email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("email_verification_token", sa.String(length=128), nullable=True),
        sa.Column("email_verification_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("password_reset_token", sa.String(length=128), nullable=True),
        sa.Column("password_reset_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("refresh_token_hash", sa.String(length=64), nullable=True),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.String(length=64), nullable=True),
    )
    op.create_index("ix_accounts_email", "accounts", ["email"])
    op.create_index("ix_accounts_deleted", "accounts", ["deleted"])
    op.create_index("ix_accounts_email_verification_token", "accounts", ["email_verification_token"])
    op.create_index("ix_accounts_password_reset_token", "accounts", ["password_reset_token"])

    # 활성 계정(deleted=false)끼리만 email unique
    op.create_index(
        "uq_accounts_email_active",
        "accounts",
        ["email"],
        unique=True,
        postgresql_where=sa.text("deleted = false"),
    )


def downgrade():
    op.drop_index("uq_accounts_email_active", table_name="accounts")
    op.drop_index("ix_accounts_password_reset_token", table_name="accounts")
    op.drop_index("ix_accounts_email_verification_token", table_name="accounts")
    op.drop_index("ix_accounts_deleted", table_name="accounts")
    op.drop_index("ix_accounts_email", table_name="accounts")
    op.drop_table("accounts")
    account_status.drop(op.get_bind(), checkfirst=True)
    account_role.drop(op.get_bind(), checkfirst=True)
