"""Initial schema: records, taxonomies, nodes, metadata and membership.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "record",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("slug", sa.String(length=200), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_record"),
    )
    op.create_index("ix_record_kind_status", "record", ["kind", "status"])

    op.create_table(
        "record_meta",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("record_id", sa.Integer(), nullable=False),
        sa.Column("meta_key", sa.String(length=255), nullable=False),
        sa.Column("meta_value", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["record_id"],
            ["record.id"],
            name="fk_record_meta_record_id_record",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_record_meta"),
        sa.UniqueConstraint("record_id", "meta_key", name="uq_record_meta_record_id"),
    )
    op.create_index("ix_record_meta_key", "record_meta", ["meta_key"])

    op.create_table(
        "taxonomy",
        sa.Column("name", sa.String(length=32), nullable=False),
        sa.Column("object_kinds", sa.String(), nullable=False),
        sa.Column("options", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("name", name="pk_taxonomy"),
    )

    op.create_table(
        "node",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("taxonomy", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(length=200), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_node"),
        sa.UniqueConstraint("taxonomy", "slug", name="uq_node_taxonomy"),
    )

    op.create_table(
        "node_meta",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("node_id", sa.Integer(), nullable=False),
        sa.Column("meta_key", sa.String(length=255), nullable=False),
        sa.Column("meta_value", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["node_id"],
            ["node.id"],
            name="fk_node_meta_node_id_node",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_node_meta"),
        sa.UniqueConstraint("node_id", "meta_key", name="uq_node_meta_node_id"),
    )
    op.create_index("ix_node_meta_key", "node_meta", ["meta_key"])

    op.create_table(
        "node_membership",
        sa.Column("record_id", sa.Integer(), nullable=False),
        sa.Column("node_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["record_id"],
            ["record.id"],
            name="fk_node_membership_record_id_record",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["node_id"],
            ["node.id"],
            name="fk_node_membership_node_id_node",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("record_id", "node_id", name="pk_node_membership"),
    )
    op.create_index("ix_node_membership_node", "node_membership", ["node_id"])


def downgrade() -> None:
    op.drop_index("ix_node_membership_node", table_name="node_membership")
    op.drop_table("node_membership")
    op.drop_index("ix_node_meta_key", table_name="node_meta")
    op.drop_table("node_meta")
    op.drop_table("node")
    op.drop_table("taxonomy")
    op.drop_index("ix_record_meta_key", table_name="record_meta")
    op.drop_table("record_meta")
    op.drop_index("ix_record_kind_status", table_name="record")
    op.drop_table("record")
