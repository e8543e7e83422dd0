# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial academic workflow schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-06-02
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("institution_id", sa.String(36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _tenant_index(table: str) -> None:
    op.create_index(f"ix_{table}_institution_id", table, ["institution_id"])


def upgrade() -> None:
    """Create workflow tables."""
    # =========================================================================
    # ACADEMIC STRUCTURE
    # =========================================================================

    op.create_table(
        "programs",
        *_base_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
    )
    _tenant_index("programs")

    op.create_table(
        "academic_years",
        *_base_columns(),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.false()),
    )
    _tenant_index("academic_years")

    op.create_table(
        "classes",
        *_base_columns(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("program_id", sa.String(36), sa.ForeignKey("programs.id"), nullable=False),
        sa.Column(
            "academic_year_id", sa.String(36), sa.ForeignKey("academic_years.id"), nullable=False
        ),
    )
    _tenant_index("classes")

    op.create_table(
        "courses",
        *_base_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("program_id", sa.String(36), sa.ForeignKey("programs.id"), nullable=False),
        sa.Column("credits", sa.Integer, nullable=False, server_default="0"),
    )
    _tenant_index("courses")

    op.create_table(
        "class_courses",
        *_base_columns(),
        sa.Column("class_id", sa.String(36), sa.ForeignKey("classes.id"), nullable=False),
        sa.Column("course_id", sa.String(36), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column("teacher_id", sa.String(36), nullable=True),
        sa.Column("semester", sa.String(20), nullable=True),
        sa.UniqueConstraint("class_id", "course_id", name="uq_class_course"),
    )
    _tenant_index("class_courses")

    op.create_table(
        "students",
        *_base_columns(),
        sa.Column("registration_number", sa.String(50), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("class_id", sa.String(36), sa.ForeignKey("classes.id"), nullable=False),
    )
    _tenant_index("students")

    # =========================================================================
    # ASSESSMENT
    # =========================================================================

    op.create_table(
        "exams",
        *_base_columns(),
        sa.Column(
            "class_course_id", sa.String(36), sa.ForeignKey("class_courses.id"), nullable=False
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("weight", sa.Numeric(5, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("is_locked", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("scheduled_by", sa.String(36), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submitted_by", sa.String(36), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("validated_by", sa.String(36), nullable=True),
        sa.Column("validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("weight >= 1 AND weight <= 100", name="valid_exam_weight"),
        sa.CheckConstraint(
            "status IN ('draft', 'scheduled', 'submitted', 'approved', 'locked')",
            name="valid_exam_status",
        ),
    )
    _tenant_index("exams")
    op.create_index("ix_exams_class_course_id", "exams", ["class_course_id"])

    op.create_table(
        "grades",
        *_base_columns(),
        sa.Column("student_id", sa.String(36), sa.ForeignKey("students.id"), nullable=False),
        sa.Column(
            "exam_id",
            sa.String(36),
            sa.ForeignKey("exams.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("score", sa.Numeric(5, 2), nullable=False),
        sa.UniqueConstraint("student_id", "exam_id", name="uq_grade_student_exam"),
        sa.CheckConstraint("score >= 0 AND score <= 20", name="valid_grade_score"),
    )
    _tenant_index("grades")
    op.create_index("ix_grades_student_id", "grades", ["student_id"])
    op.create_index("ix_grades_exam_id", "grades", ["exam_id"])

    # =========================================================================
    # ENROLLMENT AND CREDITS
    # =========================================================================

    op.create_table(
        "student_course_enrollments",
        *_base_columns(),
        sa.Column("student_id", sa.String(36), sa.ForeignKey("students.id"), nullable=False),
        sa.Column(
            "class_course_id", sa.String(36), sa.ForeignKey("class_courses.id"), nullable=False
        ),
        sa.Column("course_id", sa.String(36), sa.ForeignKey("courses.id"), nullable=False),
        sa.Column(
            "academic_year_id", sa.String(36), sa.ForeignKey("academic_years.id"), nullable=False
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="planned"),
        sa.Column("attempt", sa.Integer, nullable=False, server_default="1"),
        sa.Column("credits_attempted", sa.Integer, nullable=False, server_default="0"),
        sa.Column("credits_earned", sa.Integer, nullable=False, server_default="0"),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "student_id", "class_course_id", "attempt", name="uq_enrollment_student_course_attempt"
        ),
        sa.CheckConstraint(
            "status IN ('planned', 'active', 'completed', 'failed', 'withdrawn')",
            name="valid_enrollment_status",
        ),
    )
    _tenant_index("student_course_enrollments")
    op.create_index(
        "ix_student_course_enrollments_student_id", "student_course_enrollments", ["student_id"]
    )
    op.create_index(
        "ix_student_course_enrollments_class_course_id",
        "student_course_enrollments",
        ["class_course_id"],
    )

    op.create_table(
        "student_credit_ledgers",
        *_base_columns(),
        sa.Column("student_id", sa.String(36), sa.ForeignKey("students.id"), nullable=False),
        sa.Column(
            "academic_year_id", sa.String(36), sa.ForeignKey("academic_years.id"), nullable=False
        ),
        sa.Column("credits_in_progress", sa.Integer, nullable=False, server_default="0"),
        sa.Column("credits_earned", sa.Integer, nullable=False, server_default="0"),
        sa.Column("required_credits", sa.Integer, nullable=False, server_default="60"),
        sa.UniqueConstraint("student_id", "academic_year_id", name="uq_ledger_student_year"),
    )
    _tenant_index("student_credit_ledgers")
    op.create_index(
        "ix_student_credit_ledgers_student_id", "student_credit_ledgers", ["student_id"]
    )

    op.create_table(
        "enrollment_windows",
        *_base_columns(),
        sa.Column("class_id", sa.String(36), sa.ForeignKey("classes.id"), nullable=False),
        sa.Column(
            "academic_year_id", sa.String(36), sa.ForeignKey("academic_years.id"), nullable=False
        ),
        sa.Column("status", sa.String(10), nullable=False, server_default="open"),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("class_id", "academic_year_id", name="uq_window_class_year"),
        sa.CheckConstraint("status IN ('open', 'closed')", name="valid_window_status"),
    )
    _tenant_index("enrollment_windows")

    # =========================================================================
    # NOTIFICATION OUTBOX
    # =========================================================================

    op.create_table(
        "notifications",
        *_base_columns(),
        sa.Column("channel", sa.String(20), nullable=False, server_default="in_app"),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("payload", sa.JSON, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("attempts", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text, nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("recipient_id", sa.String(36), nullable=True),
        sa.CheckConstraint("status IN ('pending', 'sent')", name="valid_notification_status"),
        sa.CheckConstraint(
            "channel IN ('in_app', 'email', 'webhook')", name="valid_notification_channel"
        ),
    )
    _tenant_index("notifications")
    op.create_index("ix_notifications_type", "notifications", ["type"])
    op.create_index("ix_notifications_status", "notifications", ["status"])


def downgrade() -> None:
    """Drop workflow tables."""
    for table in (
        "notifications",
        "enrollment_windows",
        "student_credit_ledgers",
        "student_course_enrollments",
        "grades",
        "exams",
        "students",
        "class_courses",
        "courses",
        "classes",
        "academic_years",
        "programs",
    ):
        op.drop_table(table)
