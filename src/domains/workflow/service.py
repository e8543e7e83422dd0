# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Workflow actions that span several records.

This module provides the WorkflowService class for:
- Grade validation (delegated to the exam lifecycle)
- Opening and closing class enrollment windows
- Attendance alerts
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.auth.access import AccessPolicy, Actor
from src.domains.exam.service import ExamService
from src.domains.exceptions import NotFoundError
from src.domains.notification.service import NotificationService
from src.infrastructure.database.connection import transaction
from src.infrastructure.database.models import (
    AcademicYear,
    Class,
    ClassCourse,
    EnrollmentWindow,
    Exam,
    NotificationType,
    Student,
    WindowStatus,
)
from src.models.workflow import (
    AttendanceAlertRequest,
    EnrollmentWindowRequest,
    ValidateGradesRequest,
)
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class WorkflowServiceError(Exception):
    """Base exception for workflow service errors."""


class ClassNotFoundError(NotFoundError, WorkflowServiceError):
    """Raised when class is not found."""


class AcademicYearNotFoundError(NotFoundError, WorkflowServiceError):
    """Raised when academic year is not found."""


class StudentNotFoundError(NotFoundError, WorkflowServiceError):
    """Raised when student is not found."""


class ClassCourseNotFoundError(NotFoundError, WorkflowServiceError):
    """Raised when class-course is not found."""


class WorkflowService:
    """Service for cross-record workflow actions.

    Attributes:
        db: Async database session.
        exams: Exam lifecycle service bound to the same session.
        notifications: Outbox writer bound to the same session.
    """

    def __init__(self, db: AsyncSession, policy: AccessPolicy | None = None) -> None:
        self.db = db
        self.exams = ExamService(db, policy=policy)
        self.notifications = NotificationService(db)

    async def validate_grades(
        self,
        institution_id: str,
        request: ValidateGradesRequest,
        actor: Actor,
    ) -> Exam:
        """Approve a submitted exam's grades."""
        return await self.exams.validate_exam(
            institution_id,
            request.exam_id,
            actor,
            approver_id=request.approver_id,
        )

    async def set_enrollment_window(
        self,
        institution_id: str,
        request: EnrollmentWindowRequest,
        actor: Actor,
    ) -> EnrollmentWindow:
        """Open or close enrollment for a class in an academic year.

        The window is created on first use.

        Raises:
            ClassNotFoundError: If class not found.
            AcademicYearNotFoundError: If academic year not found.
        """
        opening = request.action == "open"

        async with transaction(self.db):
            await self._check_class(institution_id, request.class_id)
            await self._check_academic_year(institution_id, request.academic_year_id)

            result = await self.db.execute(
                select(EnrollmentWindow)
                .where(
                    EnrollmentWindow.institution_id == institution_id,
                    EnrollmentWindow.class_id == request.class_id,
                    EnrollmentWindow.academic_year_id == request.academic_year_id,
                )
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            window = result.scalar_one_or_none()
            if window is None:
                window = EnrollmentWindow(
                    institution_id=institution_id,
                    class_id=request.class_id,
                    academic_year_id=request.academic_year_id,
                )
                self.db.add(window)

            now = utc_now()
            if opening:
                window.status = WindowStatus.OPEN.value
                window.opened_at = now
            else:
                window.status = WindowStatus.CLOSED.value
                window.closed_at = now
            await self.db.flush()

            self.notifications.enqueue(
                institution_id,
                NotificationType.ENROLLMENT_OPEN if opening else NotificationType.ENROLLMENT_CLOSED,
                {
                    "window_id": window.id,
                    "class_id": request.class_id,
                    "academic_year_id": request.academic_year_id,
                    "status": window.status,
                    "actor_id": actor.id,
                },
            )

        logger.info(
            "Enrollment window %s: class=%s, year=%s, by=%s",
            window.status,
            request.class_id,
            request.academic_year_id,
            actor.id,
        )
        return window

    async def list_enrollment_windows(
        self,
        institution_id: str,
        academic_year_id: str | None = None,
    ) -> list[EnrollmentWindow]:
        query = select(EnrollmentWindow).where(EnrollmentWindow.institution_id == institution_id)
        if academic_year_id:
            query = query.where(EnrollmentWindow.academic_year_id == academic_year_id)
        query = query.order_by(EnrollmentWindow.updated_at.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def attendance_alert(
        self,
        institution_id: str,
        request: AttendanceAlertRequest,
        actor: Actor,
    ) -> None:
        """Queue an attendance alert for a student.

        Raises:
            StudentNotFoundError: If student not found.
            ClassCourseNotFoundError: If the class-course is given but not found.
        """
        async with transaction(self.db):
            student = await self.db.scalar(
                select(Student.id).where(
                    Student.id == request.student_id,
                    Student.institution_id == institution_id,
                )
            )
            if student is None:
                raise StudentNotFoundError(f"Student {request.student_id} not found")

            if request.class_course_id:
                class_course = await self.db.scalar(
                    select(ClassCourse.id).where(
                        ClassCourse.id == request.class_course_id,
                        ClassCourse.institution_id == institution_id,
                    )
                )
                if class_course is None:
                    raise ClassCourseNotFoundError(
                        f"Class course {request.class_course_id} not found"
                    )

            self.notifications.enqueue(
                institution_id,
                NotificationType.ATTENDANCE_ALERT,
                {
                    "student_id": request.student_id,
                    "class_course_id": request.class_course_id,
                    "severity": request.severity,
                    "message": request.message,
                    "actor_id": actor.id,
                },
                recipient_id=request.student_id,
            )

        logger.info(
            "Attendance alert queued: student=%s, severity=%s, by=%s",
            request.student_id,
            request.severity,
            actor.id,
        )

    async def _check_class(self, institution_id: str, class_id: str) -> None:
        found = await self.db.scalar(
            select(Class.id).where(Class.id == class_id, Class.institution_id == institution_id)
        )
        if found is None:
            raise ClassNotFoundError(f"Class {class_id} not found")

    async def _check_academic_year(self, institution_id: str, academic_year_id: str) -> None:
        found = await self.db.scalar(
            select(AcademicYear.id).where(
                AcademicYear.id == academic_year_id,
                AcademicYear.institution_id == institution_id,
            )
        )
        if found is None:
            raise AcademicYearNotFoundError(f"Academic year {academic_year_id} not found")
