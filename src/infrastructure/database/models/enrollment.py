# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course enrollments, credit ledgers and enrollment windows."""

from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, IdMixin, TenantMixin, TimestampMixin


class EnrollmentStatus(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    WITHDRAWN = "withdrawn"


FINAL_ENROLLMENT_STATUSES = frozenset(
    {EnrollmentStatus.COMPLETED, EnrollmentStatus.FAILED, EnrollmentStatus.WITHDRAWN}
)
OPEN_ENROLLMENT_STATUSES = frozenset({EnrollmentStatus.PLANNED, EnrollmentStatus.ACTIVE})
GRADE_ELIGIBLE_STATUSES = frozenset(
    {EnrollmentStatus.PLANNED, EnrollmentStatus.ACTIVE, EnrollmentStatus.COMPLETED}
)


class WindowStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class StudentCourseEnrollment(Base, IdMixin, TenantMixin, TimestampMixin):
    """A student's registration in one class-course for one attempt."""

    __tablename__ = "student_course_enrollments"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "class_course_id", "attempt", name="uq_enrollment_student_course_attempt"
        ),
        CheckConstraint(
            "status IN ('planned', 'active', 'completed', 'failed', 'withdrawn')",
            name="valid_enrollment_status",
        ),
    )

    student_id: Mapped[str] = mapped_column(ForeignKey("students.id"), nullable=False, index=True)
    class_course_id: Mapped[str] = mapped_column(
        ForeignKey("class_courses.id"), nullable=False, index=True
    )
    course_id: Mapped[str] = mapped_column(ForeignKey("courses.id"), nullable=False)
    academic_year_id: Mapped[str] = mapped_column(ForeignKey("academic_years.id"), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EnrollmentStatus.PLANNED.value
    )
    attempt: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    credits_attempted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    credits_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class StudentCreditLedger(Base, IdMixin, TenantMixin, TimestampMixin):
    """Running credit totals for one student in one academic year.

    Only ever adjusted by signed deltas from enrollment status changes.
    """

    __tablename__ = "student_credit_ledgers"
    __table_args__ = (
        UniqueConstraint("student_id", "academic_year_id", name="uq_ledger_student_year"),
    )

    student_id: Mapped[str] = mapped_column(ForeignKey("students.id"), nullable=False, index=True)
    academic_year_id: Mapped[str] = mapped_column(ForeignKey("academic_years.id"), nullable=False)
    credits_in_progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    credits_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    required_credits: Mapped[int] = mapped_column(Integer, nullable=False, default=60)


class EnrollmentWindow(Base, IdMixin, TenantMixin, TimestampMixin):
    __tablename__ = "enrollment_windows"
    __table_args__ = (
        UniqueConstraint("class_id", "academic_year_id", name="uq_window_class_year"),
        CheckConstraint("status IN ('open', 'closed')", name="valid_window_status"),
    )

    class_id: Mapped[str] = mapped_column(ForeignKey("classes.id"), nullable=False)
    academic_year_id: Mapped[str] = mapped_column(ForeignKey("academic_years.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False, default=WindowStatus.OPEN.value)
    opened_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
