"""Users table for the credential store.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

_user_role = sa.Enum("ADMINISTRATOR", "SELLER", name="userrole")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("full_name", sa.String(length=255)),
        sa.Column("phone_number", sa.String(length=32)),
        sa.Column("address", sa.String(length=255)),
        sa.Column("birth_date", sa.Date()),
        sa.Column("job_title", sa.String(length=120)),
        sa.Column("biography", sa.Text()),
        sa.Column("photo", sa.Text()),
        sa.Column("role", _user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("in_session", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("session_ended_at", sa.DateTime(timezone=True)),
        sa.Column("reset_token_hash", sa.String(length=64), unique=True),
        sa.Column("reset_token_expires_at", sa.DateTime(timezone=True)),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint(
            "(reset_token_hash IS NULL AND reset_token_expires_at IS NULL) OR "
            "(reset_token_hash IS NOT NULL AND reset_token_expires_at IS NOT NULL)",
            name="ck_users_reset_token_pair",
        ),
    )


def downgrade() -> None:
    op.drop_table("users")
    _user_role.drop(op.get_bind(), checkfirst=True)
