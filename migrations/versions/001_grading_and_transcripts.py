"""Users, students, the grading structure, marks and final transcripts

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""

import typing as t

from alembic import op
from sqlalchemy import func as f
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.schema import Column, ForeignKey
from sqlalchemy.types import Boolean, DateTime, Double, Integer, String, Text

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None


def timestamps() -> tuple[Column[t.Any], Column[t.Any]]:
    return (
        Column("create_time", DateTime(timezone=True), server_default=f.now(), nullable=False),
        Column("update_time", DateTime(timezone=True), server_default=f.now(), nullable=False),
    )


def authors() -> tuple[Column[t.Any], Column[t.Any]]:
    return (
        Column("created_by", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("updated_by", String(22), ForeignKey("users.user_id"), nullable=False),
    )


def upgrade() -> None:
    op.create_table(
        "users",
        Column("user_id", String(22), primary_key=True),
        Column("email", String, unique=True, nullable=False),
        Column("name", String, nullable=False),
        *timestamps(),
    )

    op.create_table(
        "students",
        Column("student_id", String(22), primary_key=True),
        Column("first_name", String, nullable=False),
        Column("last_name", String, nullable=False),
        Column("email", String, unique=True, nullable=False),
        Column("status", String(32), server_default="ACTIVE", nullable=False),
        *timestamps(),
    )

    # Grading structure
    op.create_table(
        "blocks",
        Column("block_id", String(22), primary_key=True),
        *authors(),
        Column("name", String, nullable=False),
        Column("description", Text, server_default="", nullable=False),
        Column("evaluation_type", String(32), server_default="SCORE", nullable=False),
        Column("block_type", String(32), server_default="REGULAR", nullable=False),
        Column("is_counted_in_final_transcript", Boolean, server_default="true", nullable=False),
        Column("position", Integer, server_default="0", nullable=False),
        Column("status", String(32), server_default="ACTIVE", nullable=False),
        Column("passing_criteria", JSONB, nullable=True),
        *timestamps(),
    )

    op.create_table(
        "subjects",
        Column("subject_id", String(22), primary_key=True),
        Column("block_id", String(22), ForeignKey("blocks.block_id"), nullable=False),
        *authors(),
        Column("name", String, nullable=False),
        Column("description", Text, server_default="", nullable=False),
        Column("coefficient", Double, nullable=False),
        Column("position", Integer, server_default="0", nullable=False),
        Column("status", String(32), server_default="ACTIVE", nullable=False),
        Column("passing_criteria", JSONB, nullable=True),
        *timestamps(),
    )
    op.create_index("ix_subjects_block_id", "subjects", ["block_id"])

    op.create_table(
        "tests",
        Column("test_id", String(22), primary_key=True),
        Column("subject_id", String(22), ForeignKey("subjects.subject_id"), nullable=False),
        *authors(),
        Column("name", String, nullable=False),
        Column("description", Text, server_default="", nullable=False),
        Column("weight", Double, nullable=False),
        Column("notations", JSONB, server_default="[]", nullable=False),
        Column("position", Integer, server_default="0", nullable=False),
        Column("status", String(32), server_default="ACTIVE", nullable=False),
        Column("passing_criteria", JSONB, nullable=True),
        *timestamps(),
    )
    op.create_index("ix_tests_subject_id", "tests", ["subject_id"])

    # Marks
    op.create_table(
        "student_test_results",
        Column("student_test_result_id", String(22), primary_key=True),
        Column("student_id", String(22), ForeignKey("students.student_id"), nullable=False),
        Column("test_id", String(22), ForeignKey("tests.test_id"), nullable=False),
        *authors(),
        Column("marks", JSONB, server_default="[]", nullable=False),
        Column("average_mark", Double, nullable=False),
        Column("mark_entry_date", DateTime(timezone=True), nullable=False),
        Column("status", String(32), server_default="PENDING", nullable=False),
        *timestamps(),
    )
    op.create_index("ix_student_test_results_student_id", "student_test_results", ["student_id"])

    # One transcript per student, replaced on every calculation
    op.create_table(
        "final_transcript_results",
        Column("transcript_id", String(22), primary_key=True),
        Column("student_id", String(22), ForeignKey("students.student_id"), unique=True, nullable=False),
        *authors(),
        Column("overall_result", String(32), nullable=False),
        Column("block_results", JSONB, server_default="[]", nullable=False),
        *timestamps(),
    )


def downgrade() -> None:
    op.drop_table("final_transcript_results")
    op.drop_table("student_test_results")
    op.drop_table("tests")
    op.drop_table("subjects")
    op.drop_table("blocks")
    op.drop_table("students")
    op.drop_table("users")
