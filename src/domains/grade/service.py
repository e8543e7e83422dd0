# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade register.

At most one grade exists per (student, exam). Every mutation locks the
exam row first and re-reads its lock flag inside the same transaction, so
a lock committed before the write started is always observed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.auth.access import AccessPolicy, Actor
from src.domains.exam.service import ClassCourseNotFoundError, ExamLockedError, ExamNotFoundError
from src.domains.exceptions import ForbiddenError, NotFoundError, ValidationError
from src.infrastructure.database.connection import transaction
from src.infrastructure.database.models import (
    GRADE_ELIGIBLE_STATUSES,
    ClassCourse,
    Course,
    Exam,
    Grade,
    Student,
    StudentCourseEnrollment,
)
from src.models.grade import GradeUpsertRequest
from src.utils.datetime import next_instant

logger = logging.getLogger(__name__)

MIN_SCORE = 0.0
MAX_SCORE = 20.0
DEFAULT_PAGE_SIZE = 50


class GradeServiceError(Exception):
    """Base exception for grade service errors."""


class GradeNotFoundError(NotFoundError, GradeServiceError):
    """Raised when the grade does not exist for the institution."""


class StudentNotFoundError(NotFoundError, GradeServiceError):
    """Raised when the student does not exist for the institution."""


class CourseNotFoundError(NotFoundError, GradeServiceError):
    """Raised when the course does not exist for the institution."""


class InvalidScoreError(ValidationError, GradeServiceError):
    """Raised when a score is outside 0-20."""


class GradeAccessDeniedError(ForbiddenError, GradeServiceError):
    """Raised when the caller may not edit grades for the class-course."""


class StudentNotRegisteredError(ForbiddenError, GradeServiceError):
    """Raised when the student holds no eligible enrollment in the class-course."""


@dataclass
class GradePage:
    """One page of grades with the cursor of the next page, if any."""

    items: list[Grade]
    next_cursor: str | None = None


@dataclass
class CourseAverage:
    """Weighted average of a student in one course.

    Each exam contributes ``score * weight / 100``, so a course whose
    exam weights do not yet reach 100 reports a partial average.
    """

    course_id: str
    course_name: str
    course_code: str
    credits: int
    average: float


@dataclass
class StudentTranscript:
    """Consolidated results of a student across courses.

    ``overall_average`` weights each course average by the course credits.
    """

    student_id: str
    courses: list[CourseAverage] = field(default_factory=list)
    total_credits: int = 0
    overall_average: float = 0.0


class GradeService:
    """Service for grade entry.

    Attributes:
        db: Async database session.
        policy: Capability checks.
    """

    def __init__(self, db: AsyncSession, policy: AccessPolicy | None = None) -> None:
        self.db = db
        self.policy = policy or AccessPolicy()

    async def upsert_grade(
        self,
        institution_id: str,
        request: GradeUpsertRequest,
        actor: Actor,
    ) -> Grade:
        """Create or replace the grade for (student, exam).

        Repeated calls keep a single row; ``updated_at`` strictly increases
        on every write.

        Raises:
            InvalidScoreError: If the score is outside 0-20.
            ExamNotFoundError: If the exam is unknown.
            ExamLockedError: If the exam is locked.
            GradeAccessDeniedError: If the caller may not edit grades.
            StudentNotRegisteredError: If the student is not enrolled.
        """
        self._check_score(request.score)

        async with transaction(self.db):
            exam = await self._lock_exam(institution_id, request.exam_id)
            await self._authorize(institution_id, exam, actor)
            await self._get_student(institution_id, request.student_id)
            await self._ensure_registered(institution_id, request.student_id, exam.class_course_id)

            result = await self.db.execute(
                select(Grade)
                .where(
                    Grade.student_id == request.student_id,
                    Grade.exam_id == exam.id,
                )
                .execution_options(populate_existing=True)
            )
            grade = result.scalar_one_or_none()

            if grade is None:
                stamp = next_instant(None)
                grade = Grade(
                    institution_id=institution_id,
                    student_id=request.student_id,
                    exam_id=exam.id,
                    score=request.score,
                    created_at=stamp,
                    updated_at=stamp,
                )
                self.db.add(grade)
                created = True
            else:
                grade.score = request.score
                grade.updated_at = next_instant(grade.updated_at)
                created = False

        logger.info(
            "Grade %s: exam=%s, student=%s, score=%s, by=%s",
            "created" if created else "updated",
            exam.id,
            request.student_id,
            request.score,
            actor.id,
        )
        return grade

    async def update_grade(
        self,
        institution_id: str,
        grade_id: str,
        score: float,
        actor: Actor,
    ) -> Grade:
        """Change the score of an existing grade.

        Raises:
            InvalidScoreError: If the score is outside 0-20.
            GradeNotFoundError: If the grade is unknown.
            ExamLockedError: If the exam is locked.
        """
        self._check_score(score)

        async with transaction(self.db):
            grade = await self._get_grade(institution_id, grade_id)
            exam = await self._lock_exam(institution_id, grade.exam_id)
            await self._authorize(institution_id, exam, actor)
            await self._ensure_registered(institution_id, grade.student_id, exam.class_course_id)

            grade = await self._get_grade(institution_id, grade_id, refresh=True)
            grade.score = score
            grade.updated_at = next_instant(grade.updated_at)

        logger.info("Grade updated: grade=%s, score=%s, by=%s", grade.id, score, actor.id)
        return grade

    async def delete_grade(self, institution_id: str, grade_id: str, actor: Actor) -> None:
        """Remove a grade.

        Raises:
            GradeNotFoundError: If the grade is unknown.
            ExamLockedError: If the exam is locked.
        """
        async with transaction(self.db):
            grade = await self._get_grade(institution_id, grade_id)
            exam = await self._lock_exam(institution_id, grade.exam_id)
            await self._authorize(institution_id, exam, actor)

            grade = await self._get_grade(institution_id, grade_id, refresh=True)
            await self.db.delete(grade)

        logger.info("Grade deleted: grade=%s, exam=%s, by=%s", grade_id, exam.id, actor.id)

    async def list_by_exam(self, institution_id: str, exam_id: str) -> list[Grade]:
        result = await self.db.execute(
            select(Grade)
            .where(Grade.institution_id == institution_id, Grade.exam_id == exam_id)
            .order_by(Grade.created_at.asc())
        )
        return list(result.scalars().all())

    async def list_by_student(self, institution_id: str, student_id: str) -> list[Grade]:
        result = await self.db.execute(
            select(Grade)
            .where(Grade.institution_id == institution_id, Grade.student_id == student_id)
            .order_by(Grade.created_at.asc())
        )
        return list(result.scalars().all())

    async def list_by_class_course(
        self,
        institution_id: str,
        class_course_id: str,
        cursor: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> GradePage:
        """List the grades of every exam of a class-course, ordered by grade ID.

        Args:
            cursor: Last grade ID of the previous page.
            limit: Page size.

        Raises:
            ClassCourseNotFoundError: If the class-course is unknown.
        """
        await self._get_class_course(institution_id, class_course_id)

        query = (
            select(Grade)
            .join(Exam, Exam.id == Grade.exam_id)
            .where(
                Grade.institution_id == institution_id,
                Exam.class_course_id == class_course_id,
            )
        )
        if cursor:
            query = query.where(Grade.id > cursor)

        result = await self.db.execute(query.order_by(Grade.id.asc()).limit(limit))
        items = list(result.scalars().all())
        next_cursor = items[-1].id if len(items) == limit else None
        return GradePage(items=items, next_cursor=next_cursor)

    async def average_for_exam(self, institution_id: str, exam_id: str) -> float | None:
        """Mean score of an exam, or None when it has no grades."""
        exam = await self.db.execute(
            select(Exam.id).where(Exam.id == exam_id, Exam.institution_id == institution_id)
        )
        if exam.scalar_one_or_none() is None:
            raise ExamNotFoundError(f"Exam {exam_id} not found")

        average = await self.db.scalar(
            select(func.avg(Grade.score)).where(
                Grade.institution_id == institution_id,
                Grade.exam_id == exam_id,
            )
        )
        return _as_float(average)

    async def average_for_course(
        self,
        institution_id: str,
        course_id: str,
        student_id: str | None = None,
    ) -> float | None:
        """Mean score over every exam of a course, across all its classes.

        With ``student_id`` the mean is restricted to that student's grades.

        Raises:
            CourseNotFoundError: If the course is unknown.
            StudentNotFoundError: If the student is unknown.
        """
        if student_id:
            await self._get_student(institution_id, student_id)
        await self._get_course(institution_id, course_id)

        query = (
            select(func.avg(Grade.score))
            .join(Exam, Exam.id == Grade.exam_id)
            .join(ClassCourse, ClassCourse.id == Exam.class_course_id)
            .where(
                Grade.institution_id == institution_id,
                ClassCourse.course_id == course_id,
            )
        )
        if student_id:
            query = query.where(Grade.student_id == student_id)

        return _as_float(await self.db.scalar(query))

    async def student_transcript(self, institution_id: str, student_id: str) -> StudentTranscript:
        """Consolidate a student's grades into per-course weighted averages.

        Raises:
            StudentNotFoundError: If the student is unknown.
        """
        await self._get_student(institution_id, student_id)

        weighted = func.sum(Grade.score * Exam.weight / 100.0)
        result = await self.db.execute(
            select(Course.id, Course.name, Course.code, Course.credits, weighted)
            .select_from(Grade)
            .join(Exam, Exam.id == Grade.exam_id)
            .join(ClassCourse, ClassCourse.id == Exam.class_course_id)
            .join(Course, Course.id == ClassCourse.course_id)
            .where(
                Grade.institution_id == institution_id,
                Grade.student_id == student_id,
            )
            .group_by(Course.id, Course.name, Course.code, Course.credits)
            .order_by(Course.code.asc())
        )

        transcript = StudentTranscript(student_id=student_id)
        weighted_sum = 0.0
        for course_id, name, code, credits, average in result.all():
            course = CourseAverage(
                course_id=course_id,
                course_name=name,
                course_code=code,
                credits=credits or 0,
                average=_as_float(average) or 0.0,
            )
            transcript.courses.append(course)
            transcript.total_credits += course.credits
            weighted_sum += course.average * course.credits

        if transcript.total_credits:
            transcript.overall_average = weighted_sum / transcript.total_credits
        return transcript

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _check_score(score: float) -> None:
        if not MIN_SCORE <= score <= MAX_SCORE:
            raise InvalidScoreError(
                f"Score must be between {MIN_SCORE:g} and {MAX_SCORE:g}",
                code="invalid_score",
            )

    async def _lock_exam(self, institution_id: str, exam_id: str) -> Exam:
        result = await self.db.execute(
            select(Exam)
            .where(Exam.id == exam_id, Exam.institution_id == institution_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        exam = result.scalar_one_or_none()
        if not exam:
            raise ExamNotFoundError(f"Exam {exam_id} not found")
        if exam.is_locked:
            raise ExamLockedError("Exam is locked", code="exam_locked")
        return exam

    async def _authorize(self, institution_id: str, exam: Exam, actor: Actor) -> None:
        class_course = await self._get_class_course(institution_id, exam.class_course_id)
        if not self.policy.can_edit_grades(actor, class_course):
            raise GradeAccessDeniedError("Not allowed to edit grades for this class course")

    async def _get_class_course(self, institution_id: str, class_course_id: str) -> ClassCourse:
        result = await self.db.execute(
            select(ClassCourse).where(
                ClassCourse.id == class_course_id,
                ClassCourse.institution_id == institution_id,
            )
        )
        class_course = result.scalar_one_or_none()
        if not class_course:
            raise ClassCourseNotFoundError(f"Class course {class_course_id} not found")
        return class_course

    async def _get_course(self, institution_id: str, course_id: str) -> Course:
        result = await self.db.execute(
            select(Course).where(Course.id == course_id, Course.institution_id == institution_id)
        )
        course = result.scalar_one_or_none()
        if not course:
            raise CourseNotFoundError(f"Course {course_id} not found")
        return course

    async def _get_student(self, institution_id: str, student_id: str) -> Student:
        result = await self.db.execute(
            select(Student).where(
                Student.id == student_id,
                Student.institution_id == institution_id,
            )
        )
        student = result.scalar_one_or_none()
        if not student:
            raise StudentNotFoundError(f"Student {student_id} not found")
        return student

    async def _ensure_registered(
        self, institution_id: str, student_id: str, class_course_id: str
    ) -> None:
        result = await self.db.execute(
            select(StudentCourseEnrollment.id)
            .where(
                StudentCourseEnrollment.institution_id == institution_id,
                StudentCourseEnrollment.student_id == student_id,
                StudentCourseEnrollment.class_course_id == class_course_id,
                StudentCourseEnrollment.status.in_([s.value for s in GRADE_ELIGIBLE_STATUSES]),
            )
            .limit(1)
        )
        if result.scalar_one_or_none() is None:
            raise StudentNotRegisteredError(
                "Student is not registered for this class course",
                code="student_not_registered",
            )

    async def _get_grade(
        self, institution_id: str, grade_id: str, refresh: bool = False
    ) -> Grade:
        query = select(Grade).where(
            Grade.id == grade_id,
            Grade.institution_id == institution_id,
        )
        if refresh:
            query = query.execution_options(populate_existing=True)

        grade = (await self.db.execute(query)).scalar_one_or_none()
        if not grade:
            raise GradeNotFoundError(f"Grade {grade_id} not found")
        return grade


def _as_float(value) -> float | None:
    # Postgres returns Decimal for aggregates over numeric columns
    return None if value is None else float(value)
