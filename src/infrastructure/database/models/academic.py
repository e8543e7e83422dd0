# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic structure: programs, years, classes, courses and students.

These tables are plain reference data for the workflow services. Their
CRUD lives elsewhere in the platform; here they are read to resolve
programs, academic years and teachers.
"""

from datetime import date

from sqlalchemy import Boolean, Date, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, IdMixin, TenantMixin, TimestampMixin


class Program(Base, IdMixin, TenantMixin, TimestampMixin):
    __tablename__ = "programs"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)


class AcademicYear(Base, IdMixin, TenantMixin, TimestampMixin):
    __tablename__ = "academic_years"

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Class(Base, IdMixin, TenantMixin, TimestampMixin):
    __tablename__ = "classes"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    program_id: Mapped[str] = mapped_column(ForeignKey("programs.id"), nullable=False)
    academic_year_id: Mapped[str] = mapped_column(
        ForeignKey("academic_years.id"), nullable=False
    )


class Course(Base, IdMixin, TenantMixin, TimestampMixin):
    __tablename__ = "courses"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    program_id: Mapped[str] = mapped_column(ForeignKey("programs.id"), nullable=False)
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ClassCourse(Base, IdMixin, TenantMixin, TimestampMixin):
    """One course taught to one class by one teacher."""

    __tablename__ = "class_courses"
    __table_args__ = (UniqueConstraint("class_id", "course_id", name="uq_class_course"),)

    class_id: Mapped[str] = mapped_column(ForeignKey("classes.id"), nullable=False)
    course_id: Mapped[str] = mapped_column(ForeignKey("courses.id"), nullable=False)
    teacher_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    semester: Mapped[str | None] = mapped_column(String(20), nullable=True)


class Student(Base, IdMixin, TenantMixin, TimestampMixin):
    __tablename__ = "students"

    registration_number: Mapped[str] = mapped_column(String(50), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    class_id: Mapped[str] = mapped_column(ForeignKey("classes.id"), nullable=False)
