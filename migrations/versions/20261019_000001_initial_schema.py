"""Initial planner schema.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "recurrence_template",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("time", sa.String(length=10), nullable=False),
        sa.Column("anchor_date", sa.Date(), nullable=False),
        sa.Column("pattern_kind", sa.String(length=30), nullable=False),
        sa.Column("interval", sa.Integer(), nullable=False),
        sa.Column("weekdays", sa.String(length=20), nullable=True),
        sa.Column("month_days", sa.String(length=100), nullable=True),
        sa.Column("ordinals", sa.String(length=20), nullable=True),
        sa.Column("months", sa.String(length=40), nullable=True),
        sa.Column("until_date", sa.Date(), nullable=True),
        sa.Column("occurrence_count", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("retired_at", sa.DateTime(), nullable=True),
        sa.Column("retired_on", sa.Date(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "todo",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("time", sa.String(length=10), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_todo_due_date", "todo", ["due_date"], unique=False)
    op.create_table(
        "template_exception",
        sa.Column("template_id", sa.Integer(), nullable=False),
        sa.Column("exception_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["template_id"], ["recurrence_template.id"]),
        sa.PrimaryKeyConstraint("template_id", "exception_date"),
    )
    op.create_table(
        "occurrence",
        sa.Column("template_id", sa.Integer(), nullable=False),
        sa.Column("occurrence_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("override_title", sa.String(length=200), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["template_id"], ["recurrence_template.id"]),
        sa.PrimaryKeyConstraint("template_id", "occurrence_date"),
    )


def downgrade() -> None:
    op.drop_table("occurrence")
    op.drop_table("template_exception")
    op.drop_index("ix_todo_due_date", table_name="todo")
    op.drop_table("todo")
    op.drop_table("recurrence_template")
