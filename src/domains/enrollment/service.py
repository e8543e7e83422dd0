# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service for student course enrollments.

This module provides the EnrollmentService class for:
- Idempotent enrollment of a student in a class-course
- Bulk enrollment operations
- Status transitions and their credit ledger deltas
- Closing a student's open enrollments

Every status write and the ledger delta it implies share one transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.credit_ledger.service import CreditLedgerService
from src.domains.exceptions import InvalidStateError, NotFoundError, ValidationError
from src.infrastructure.database.connection import transaction
from src.infrastructure.database.models import (
    FINAL_ENROLLMENT_STATUSES,
    OPEN_ENROLLMENT_STATUSES,
    Class,
    ClassCourse,
    Course,
    EnrollmentStatus,
    EnrollmentWindow,
    Student,
    StudentCourseEnrollment,
    WindowStatus,
)
from src.models.enrollment import BulkEnrollRequest, EnrollRequest
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Contribution:
    """Credits one enrollment contributes to its ledger entry."""

    in_progress: int
    earned: int

    def __sub__(self, other: Contribution) -> Contribution:
        return Contribution(self.in_progress - other.in_progress, self.earned - other.earned)


NO_CONTRIBUTION = Contribution(0, 0)


def contribution_for_status(status: EnrollmentStatus | str, credits: int) -> Contribution:
    """Map an enrollment status to its ledger contribution.

    ``active`` counts as in progress, ``completed`` as earned, and every
    other status contributes nothing.
    """
    status = EnrollmentStatus(status)
    if status == EnrollmentStatus.ACTIVE:
        return Contribution(credits, 0)
    if status == EnrollmentStatus.COMPLETED:
        return Contribution(0, credits)
    return NO_CONTRIBUTION


class EnrollmentServiceError(Exception):
    """Base exception for enrollment service errors."""


class EnrollmentNotFoundError(NotFoundError, EnrollmentServiceError):
    """Raised when enrollment is not found."""


class StudentNotFoundError(NotFoundError, EnrollmentServiceError):
    """Raised when student is not found."""


class ClassCourseNotFoundError(NotFoundError, EnrollmentServiceError):
    """Raised when class-course is not found."""


class ProgramMismatchError(ValidationError, EnrollmentServiceError):
    """Raised when the course is outside the student's program."""


class InvalidFinalStatusError(ValidationError, EnrollmentServiceError):
    """Raised when closing enrollments with a non-final status."""


class EnrollmentWindowClosedError(InvalidStateError, EnrollmentServiceError):
    """Raised when the student's class has a closed enrollment window."""


class EnrollmentService:
    """Service for managing student course enrollments.

    Attributes:
        db: Async database session.
        ledger: Credit ledger bound to the same session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.ledger = CreditLedgerService(db)

    async def enroll(
        self,
        institution_id: str,
        request: EnrollRequest,
        enrolled_by: str,
    ) -> tuple[StudentCourseEnrollment, bool]:
        """Enroll a student in a class-course.

        Enrolling the same (student, class-course, attempt) twice returns
        the existing record.

        Returns:
            Tuple of (enrollment, created).

        Raises:
            StudentNotFoundError: If student not found.
            ClassCourseNotFoundError: If class-course not found.
            ProgramMismatchError: If the course is outside the student's program.
            EnrollmentWindowClosedError: If the enrollment window is closed.
        """
        async with transaction(self.db):
            student, student_class = await self._get_student(institution_id, request.student_id)
            enrollment, created = await self._enroll(
                institution_id,
                student,
                student_class,
                request.class_course_id,
                EnrollmentStatus(request.status),
                request.attempt,
            )

        if created:
            logger.info(
                "Enrolled student: student=%s, class_course=%s, status=%s, by=%s",
                request.student_id,
                request.class_course_id,
                enrollment.status,
                enrolled_by,
            )
        return enrollment, created

    async def bulk_enroll(
        self,
        institution_id: str,
        request: BulkEnrollRequest,
        enrolled_by: str,
    ) -> tuple[list[StudentCourseEnrollment], list[str]]:
        """Enroll a student in several class-courses at once.

        Existing enrollments are skipped. Any other failure aborts the
        whole batch.

        Returns:
            Tuple of (created enrollments, skipped class-course IDs).
        """
        created: list[StudentCourseEnrollment] = []
        skipped: list[str] = []

        async with transaction(self.db):
            student, student_class = await self._get_student(institution_id, request.student_id)

            for class_course_id in dict.fromkeys(request.class_course_ids):
                enrollment, was_created = await self._enroll(
                    institution_id,
                    student,
                    student_class,
                    class_course_id,
                    EnrollmentStatus(request.status),
                    attempt=1,
                )
                if was_created:
                    created.append(enrollment)
                else:
                    skipped.append(class_course_id)

        logger.info(
            "Bulk enrollment: student=%s, created=%d, skipped=%d, by=%s",
            request.student_id,
            len(created),
            len(skipped),
            enrolled_by,
        )
        return created, skipped

    async def update_status(
        self,
        institution_id: str,
        enrollment_id: str,
        status: EnrollmentStatus,
        updated_by: str,
    ) -> StudentCourseEnrollment:
        """Change an enrollment's status and apply the matching ledger delta.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
        """
        async with transaction(self.db):
            enrollment = await self._get_enrollment(institution_id, enrollment_id, for_update=True)
            previous = EnrollmentStatus(enrollment.status)
            await self._transition(enrollment, EnrollmentStatus(status))

        logger.info(
            "Enrollment status changed: enrollment=%s, %s -> %s, by=%s",
            enrollment.id,
            previous.value,
            enrollment.status,
            updated_by,
        )
        return enrollment

    async def close_for_student(
        self,
        institution_id: str,
        student_id: str,
        status: EnrollmentStatus = EnrollmentStatus.WITHDRAWN,
        closed_by: str | None = None,
    ) -> int:
        """Move every planned or active enrollment of a student to a final status.

        Returns:
            Number of enrollments closed.

        Raises:
            InvalidFinalStatusError: If ``status`` is not final.
        """
        status = EnrollmentStatus(status)
        if status not in FINAL_ENROLLMENT_STATUSES:
            raise InvalidFinalStatusError(
                f"Cannot close enrollments with status {status.value}",
                code="invalid_final_status",
            )

        async with transaction(self.db):
            result = await self.db.execute(
                select(StudentCourseEnrollment)
                .where(
                    StudentCourseEnrollment.institution_id == institution_id,
                    StudentCourseEnrollment.student_id == student_id,
                    StudentCourseEnrollment.status.in_(
                        [s.value for s in OPEN_ENROLLMENT_STATUSES]
                    ),
                )
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            enrollments = list(result.scalars().all())

            for enrollment in enrollments:
                await self._transition(enrollment, status)

        logger.info(
            "Closed enrollments: student=%s, count=%d, status=%s, by=%s",
            student_id,
            len(enrollments),
            status.value,
            closed_by,
        )
        return len(enrollments)

    async def list_enrollments(
        self,
        institution_id: str,
        student_id: str | None = None,
        class_course_id: str | None = None,
        status: EnrollmentStatus | None = None,
    ) -> list[StudentCourseEnrollment]:
        query = select(StudentCourseEnrollment).where(
            StudentCourseEnrollment.institution_id == institution_id
        )

        if student_id:
            query = query.where(StudentCourseEnrollment.student_id == student_id)
        if class_course_id:
            query = query.where(StudentCourseEnrollment.class_course_id == class_course_id)
        if status is not None:
            query = query.where(StudentCourseEnrollment.status == EnrollmentStatus(status).value)

        query = query.order_by(StudentCourseEnrollment.created_at.asc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_enrollment(
        self, institution_id: str, enrollment_id: str
    ) -> StudentCourseEnrollment:
        return await self._get_enrollment(institution_id, enrollment_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _enroll(
        self,
        institution_id: str,
        student: Student,
        student_class: Class,
        class_course_id: str,
        status: EnrollmentStatus,
        attempt: int,
    ) -> tuple[StudentCourseEnrollment, bool]:
        result = await self.db.execute(
            select(StudentCourseEnrollment).where(
                StudentCourseEnrollment.institution_id == institution_id,
                StudentCourseEnrollment.student_id == student.id,
                StudentCourseEnrollment.class_course_id == class_course_id,
                StudentCourseEnrollment.attempt == attempt,
            )
        )
        existing = result.scalar_one_or_none()
        if existing:
            return existing, False

        class_course, course, academic_year_id = await self._get_class_course(
            institution_id, class_course_id
        )

        if course.program_id != student_class.program_id:
            raise ProgramMismatchError(
                "Course does not belong to the student's program",
                code="program_mismatch",
            )

        await self._ensure_window_open(institution_id, student_class.id, academic_year_id)

        now = utc_now()
        enrollment = StudentCourseEnrollment(
            institution_id=institution_id,
            student_id=student.id,
            class_course_id=class_course.id,
            course_id=course.id,
            academic_year_id=academic_year_id,
            status=EnrollmentStatus.PLANNED.value,
            attempt=attempt,
            credits_attempted=course.credits,
            credits_earned=0,
        )
        self._apply_status_fields(enrollment, status, now)
        self.db.add(enrollment)
        await self.db.flush()

        delta = contribution_for_status(status, course.credits)
        await self.ledger.apply_delta(
            institution_id, student.id, academic_year_id, delta.in_progress, delta.earned
        )
        return enrollment, True

    async def _transition(
        self, enrollment: StudentCourseEnrollment, status: EnrollmentStatus
    ) -> None:
        previous = EnrollmentStatus(enrollment.status)
        if previous == status:
            return

        credits = enrollment.credits_attempted
        delta = contribution_for_status(status, credits) - contribution_for_status(
            previous, credits
        )
        self._apply_status_fields(enrollment, status, utc_now())

        await self.ledger.apply_delta(
            enrollment.institution_id,
            enrollment.student_id,
            enrollment.academic_year_id,
            delta.in_progress,
            delta.earned,
        )

    @staticmethod
    def _apply_status_fields(
        enrollment: StudentCourseEnrollment, status: EnrollmentStatus, now: datetime
    ) -> None:
        enrollment.status = status.value
        enrollment.credits_earned = (
            enrollment.credits_attempted if status == EnrollmentStatus.COMPLETED else 0
        )
        if status == EnrollmentStatus.ACTIVE and enrollment.started_at is None:
            enrollment.started_at = now
        if status in FINAL_ENROLLMENT_STATUSES:
            enrollment.completed_at = now
        else:
            enrollment.completed_at = None

    async def _ensure_window_open(
        self, institution_id: str, class_id: str, academic_year_id: str
    ) -> None:
        result = await self.db.execute(
            select(EnrollmentWindow.status).where(
                EnrollmentWindow.institution_id == institution_id,
                EnrollmentWindow.class_id == class_id,
                EnrollmentWindow.academic_year_id == academic_year_id,
            )
        )
        window_status = result.scalar_one_or_none()
        if window_status == WindowStatus.CLOSED.value:
            raise EnrollmentWindowClosedError(
                "Enrollment window is closed for this class",
                code="enrollment_window_closed",
            )

    async def _get_student(self, institution_id: str, student_id: str) -> tuple[Student, Class]:
        result = await self.db.execute(
            select(Student, Class)
            .join(Class, Class.id == Student.class_id)
            .where(
                Student.id == student_id,
                Student.institution_id == institution_id,
            )
        )
        row = result.one_or_none()
        if row is None:
            raise StudentNotFoundError(f"Student {student_id} not found")
        return row[0], row[1]

    async def _get_class_course(
        self, institution_id: str, class_course_id: str
    ) -> tuple[ClassCourse, Course, str]:
        result = await self.db.execute(
            select(ClassCourse, Course, Class.academic_year_id)
            .join(Course, Course.id == ClassCourse.course_id)
            .join(Class, Class.id == ClassCourse.class_id)
            .where(
                ClassCourse.id == class_course_id,
                ClassCourse.institution_id == institution_id,
            )
        )
        row = result.one_or_none()
        if row is None:
            raise ClassCourseNotFoundError(f"Class course {class_course_id} not found")
        return row[0], row[1], row[2]

    async def _get_enrollment(
        self, institution_id: str, enrollment_id: str, for_update: bool = False
    ) -> StudentCourseEnrollment:
        query = select(StudentCourseEnrollment).where(
            StudentCourseEnrollment.id == enrollment_id,
            StudentCourseEnrollment.institution_id == institution_id,
        )
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)

        enrollment = (await self.db.execute(query)).scalar_one_or_none()
        if not enrollment:
            raise EnrollmentNotFoundError(f"Enrollment {enrollment_id} not found")
        return enrollment
