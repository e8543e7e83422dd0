# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exams and grades."""

from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, IdMixin, TenantMixin, TimestampMixin


class ExamStatus(str, Enum):
    """Exam lifecycle states."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    LOCKED = "locked"


class Exam(Base, IdMixin, TenantMixin, TimestampMixin):
    """An assessment of one class-course, weighted as a percentage of the final grade."""

    __tablename__ = "exams"
    __table_args__ = (
        CheckConstraint("weight >= 1 AND weight <= 100", name="valid_exam_weight"),
        CheckConstraint(
            "status IN ('draft', 'scheduled', 'submitted', 'approved', 'locked')",
            name="valid_exam_status",
        ),
    )

    class_course_id: Mapped[str] = mapped_column(
        ForeignKey("class_courses.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    weight: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ExamStatus.DRAFT.value
    )
    is_locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    scheduled_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    submitted_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    validated_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    validated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def exam_status(self) -> ExamStatus:
        return ExamStatus(self.status)


class Grade(Base, IdMixin, TenantMixin, TimestampMixin):
    """A student's score on one exam, on a 0-20 scale."""

    __tablename__ = "grades"
    __table_args__ = (
        UniqueConstraint("student_id", "exam_id", name="uq_grade_student_exam"),
        CheckConstraint("score >= 0 AND score <= 20", name="valid_grade_score"),
    )

    student_id: Mapped[str] = mapped_column(ForeignKey("students.id"), nullable=False, index=True)
    exam_id: Mapped[str] = mapped_column(
        ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    score: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=False)
