# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ORM models.

Importing this package registers every table on Base.metadata.
"""

from src.infrastructure.database.models.academic import (
    AcademicYear,
    Class,
    ClassCourse,
    Course,
    Program,
    Student,
)
from src.infrastructure.database.models.assessment import Exam, ExamStatus, Grade
from src.infrastructure.database.models.base import Base, IdMixin, TenantMixin, TimestampMixin
from src.infrastructure.database.models.enrollment import (
    FINAL_ENROLLMENT_STATUSES,
    GRADE_ELIGIBLE_STATUSES,
    OPEN_ENROLLMENT_STATUSES,
    EnrollmentStatus,
    EnrollmentWindow,
    StudentCourseEnrollment,
    StudentCreditLedger,
    WindowStatus,
)
from src.infrastructure.database.models.notification import (
    Notification,
    NotificationStatus,
    NotificationType,
)

__all__ = [
    "Base",
    "IdMixin",
    "TenantMixin",
    "TimestampMixin",
    # Academic structure
    "Program",
    "AcademicYear",
    "Class",
    "Course",
    "ClassCourse",
    "Student",
    # Assessment
    "Exam",
    "ExamStatus",
    "Grade",
    # Enrollment
    "EnrollmentStatus",
    "EnrollmentWindow",
    "StudentCourseEnrollment",
    "StudentCreditLedger",
    "WindowStatus",
    "FINAL_ENROLLMENT_STATUSES",
    "GRADE_ELIGIBLE_STATUSES",
    "OPEN_ENROLLMENT_STATUSES",
    # Outbox
    "Notification",
    "NotificationStatus",
    "NotificationType",
]
