"""Initial schema: project, file, fmodel.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from fset.adapters.sqlalchemy.mappings import UTCDateTime

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "project",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("anchor", sa.String(length=36), nullable=False),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("inserted_at", UTCDateTime(), nullable=True),
        sa.Column("updated_at", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_project"),
        sa.UniqueConstraint("anchor", name="uq_project_anchor"),
        sa.UniqueConstraint("key", name="uq_project_key"),
    )
    op.create_table(
        "file",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("anchor", sa.String(), nullable=False),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("inserted_at", UTCDateTime(), nullable=True),
        sa.Column("updated_at", UTCDateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ["project_id"],
            ["project.id"],
            name="fk_file_project_id_project",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_file"),
        sa.UniqueConstraint("anchor", name="uq_file_anchor"),
        sa.UniqueConstraint("key", "project_id", name="uq_file_key"),
    )
    op.create_table(
        "fmodel",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("anchor", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=True),
        sa.Column("key", sa.String(), nullable=True),
        sa.Column("is_entry", sa.Boolean(), nullable=False),
        sa.Column("sch", sa.JSON(), nullable=False),
        sa.Column("file_id", sa.Uuid(), nullable=False),
        sa.Column("inserted_at", UTCDateTime(), nullable=True),
        sa.Column("updated_at", UTCDateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ["file_id"],
            ["file.id"],
            name="fk_fmodel_file_id_file",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_fmodel"),
        sa.UniqueConstraint("anchor", name="uq_fmodel_anchor"),
    )


def downgrade() -> None:
    op.drop_table("fmodel")
    op.drop_table("file")
    op.drop_table("project")
