"""Initial schema: datasets, reconciliation runs and their items.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18
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
        "dataset",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("original_filename", sa.String(), nullable=False),
        sa.Column("file_type", sa.String(length=16), nullable=False),
        sa.Column("headers", sa.Text(), nullable=False),
        sa.Column("rows", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_dataset"),
    )
    op.create_table(
        "reconciliation",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("dataset_a_id", sa.Uuid(), nullable=False),
        sa.Column("dataset_b_id", sa.Uuid(), nullable=False),
        sa.Column("key_fields", sa.Text(), nullable=False),
        sa.Column("compare_fields", sa.Text(), nullable=False),
        sa.Column("amount_tolerance", sa.String(length=64), nullable=False),
        sa.Column("field_strategies", sa.Text(), nullable=False),
        sa.Column("infer_amount_fields", sa.Boolean(), nullable=False),
        sa.Column("matches", sa.Integer(), nullable=False),
        sa.Column("mismatches", sa.Integer(), nullable=False),
        sa.Column("missing_in_a", sa.Integer(), nullable=False),
        sa.Column("missing_in_b", sa.Integer(), nullable=False),
        sa.Column("total_a", sa.Integer(), nullable=False),
        sa.Column("total_b", sa.Integer(), nullable=False),
        sa.Column("unkeyable_a", sa.Integer(), nullable=False),
        sa.Column("unkeyable_b", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["dataset_a_id"],
            ["dataset.id"],
            name="fk_reconciliation_dataset_a_id_dataset",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["dataset_b_id"],
            ["dataset.id"],
            name="fk_reconciliation_dataset_b_id_dataset",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_reconciliation"),
    )
    op.create_table(
        "reconciliation_item",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("reconciliation_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("record_a", sa.Text(), nullable=True),
        sa.Column("record_b", sa.Text(), nullable=True),
        sa.Column("reasons", sa.Text(), nullable=False),
        sa.Column("diffs", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(
            ["reconciliation_id"],
            ["reconciliation.id"],
            name="fk_reconciliation_item_reconciliation_id_reconciliation",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_reconciliation_item"),
        sa.UniqueConstraint(
            "reconciliation_id",
            "position",
            name="uq_reconciliation_item_reconciliation_id",
        ),
    )
    op.create_index(
        "ix_reconciliation_item_status",
        "reconciliation_item",
        ["reconciliation_id", "status"],
    )
    op.create_index(
        "ix_reconciliation_item_key",
        "reconciliation_item",
        ["reconciliation_id", "key"],
    )


def downgrade() -> None:
    op.drop_index("ix_reconciliation_item_key", table_name="reconciliation_item")
    op.drop_index("ix_reconciliation_item_status", table_name="reconciliation_item")
    op.drop_table("reconciliation_item")
    op.drop_table("reconciliation")
    op.drop_table("dataset")
