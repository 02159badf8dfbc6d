"""Initial schema: users, grievances and grievance_files.

Revision ID: 20261001000000
Revises:
Create Date: 2026-10-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20261001000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="user"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "grievances",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        # Nullable: legacy rows without a status read as 'open'.
        sa.Column("status", sa.String(length=32), nullable=True, server_default="open"),
        sa.Column("created_by", sa.Integer(), nullable=False),
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
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_grievances_status"), "grievances", ["status"], unique=False)
    op.create_index(op.f("ix_grievances_created_by"), "grievances", ["created_by"], unique=False)
    op.create_index(op.f("ix_grievances_created_at"), "grievances", ["created_at"], unique=False)

    op.create_table(
        "grievance_files",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("grievance_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("filename", sa.String(length=64), nullable=False),
        sa.Column("original_name", sa.String(length=512), nullable=False, server_default=""),
        sa.Column("path", sa.String(length=1024), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column(
            "mimetype",
            sa.String(length=255),
            nullable=False,
            server_default="application/octet-stream",
        ),
        sa.Column(
            "uploaded_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["grievance_id"], ["grievances.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_grievance_files_grievance_id"),
        "grievance_files",
        ["grievance_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_grievance_files_filename"),
        "grievance_files",
        ["filename"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_grievance_files_filename"), table_name="grievance_files")
    op.drop_index(op.f("ix_grievance_files_grievance_id"), table_name="grievance_files")
    op.drop_table("grievance_files")
    op.drop_index(op.f("ix_grievances_created_at"), table_name="grievances")
    op.drop_index(op.f("ix_grievances_created_by"), table_name="grievances")
    op.drop_index(op.f("ix_grievances_status"), table_name="grievances")
    op.drop_table("grievances")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
