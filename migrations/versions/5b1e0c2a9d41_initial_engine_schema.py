"""initial engine schema

Revision ID: 5b1e0c2a9d41
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1e0c2a9d41"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SUBJECT_TYPE = sa.Enum(
    "question",
    "answer",
    "solution",
    name="subjecttype",
    native_enum=False,
    length=16,
)
LIVE_TOP_LEVEL = "parent_id IS NULL AND deleted_at IS NULL"


def upgrade() -> None:
    """Create users, subjects, reactions and comments."""
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "question",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("question", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("tags", sa.String(length=255), nullable=True),
        sa.Column("status", sa.SmallInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_question_user_created", "question", ["user_id", "created_at"])
    op.create_index("ix_question_created_at", "question", ["created_at"])

    op.create_table(
        "answer",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_accepted", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["question_id"], ["question.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_answer_question_created", "answer", ["question_id", "created_at"])
    op.create_index(
        "uq_answer_one_accepted_per_question",
        "answer",
        ["question_id"],
        unique=True,
        sqlite_where=sa.text("is_accepted = 1"),
        postgresql_where=sa.text("is_accepted"),
    )

    op.create_table(
        "solution",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("solution_title", sa.String(length=255), nullable=False),
        sa.Column("solution_description", sa.Text(), nullable=True),
        sa.Column("tags", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_solution_created_at", "solution", ["created_at"])

    op.create_table(
        "reaction",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("subject_type", SUBJECT_TYPE, nullable=False),
        sa.Column("subject_id", sa.Integer(), nullable=False),
        sa.Column("polarity", sa.Boolean(), nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_id"], ["reaction.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reaction_subject", "reaction", ["subject_type", "subject_id"])
    op.create_index("ix_reaction_parent_id", "reaction", ["parent_id"])
    op.create_index(
        "uq_reaction_user_subject_top_level",
        "reaction",
        ["user_id", "subject_type", "subject_id"],
        unique=True,
        sqlite_where=sa.text(LIVE_TOP_LEVEL),
        postgresql_where=sa.text(LIVE_TOP_LEVEL),
    )

    op.create_table(
        "comment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("subject_type", SUBJECT_TYPE, nullable=False),
        sa.Column("subject_id", sa.Integer(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["user.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_id"], ["comment.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_comment_subject_created", "comment", ["subject_type", "subject_id", "created_at"]
    )
    op.create_index("ix_comment_parent_id", "comment", ["parent_id"])
    op.create_index("ix_comment_user_created", "comment", ["user_id", "created_at"])


def downgrade() -> None:
    """Drop the engine schema."""
    op.drop_table("comment")
    op.drop_table("reaction")
    op.drop_table("solution")
    op.drop_index("uq_answer_one_accepted_per_question", table_name="answer")
    op.drop_table("answer")
    op.drop_table("question")
    op.drop_table("user")
