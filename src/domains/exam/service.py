# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam lifecycle service.

This module provides the ExamService class for:
- Exam creation and edits under the class-course weight ceiling
- Lifecycle transitions (schedule, submit, validate, lock)
- Automatic locking of approved exams once their grace window elapses

Every milestone transition writes its outbox notification in the same
transaction as the status change.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import WorkflowSettings, get_settings
from src.domains.auth.access import SYSTEM_ACTOR, AccessPolicy, Actor
from src.domains.exam.state import transition
from src.domains.exceptions import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from src.domains.notification.service import NotificationService
from src.infrastructure.database.connection import transaction
from src.infrastructure.database.models import (
    ClassCourse,
    Exam,
    ExamStatus,
    Grade,
    NotificationType,
)
from src.models.exam import ExamCreateRequest, ExamUpdateRequest
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

MAX_TOTAL_WEIGHT = 100.0
MIN_EXAM_WEIGHT = 1.0


class ExamServiceError(Exception):
    """Base exception for exam service errors."""


class ExamNotFoundError(NotFoundError, ExamServiceError):
    """Raised when the exam does not exist for the institution."""


class ClassCourseNotFoundError(NotFoundError, ExamServiceError):
    """Raised when the class-course does not exist for the institution."""


class InvalidWeightError(ValidationError, ExamServiceError):
    """Raised when a weight is outside 1-100."""


class WeightLimitExceededError(ValidationError, ExamServiceError):
    """Raised when the class-course exam weights would exceed 100."""


class ExamLockedError(ForbiddenError, ExamServiceError):
    """Raised when a locked exam is modified."""


class ExamAccessDeniedError(ForbiddenError, ExamServiceError):
    """Raised when the caller may not manage, lock or unlock the exam."""


class ExamNotApprovedError(InvalidStateError, ExamServiceError):
    """Raised when locking an exam that has not been approved."""


class ExamService:
    """Service owning the exam state machine.

    Attributes:
        db: Async database session.
        notifications: Outbox writer bound to the same session.
        policy: Capability checks.
        settings: Workflow settings (grace window, sweep batch size).
    """

    def __init__(
        self,
        db: AsyncSession,
        policy: AccessPolicy | None = None,
        settings: WorkflowSettings | None = None,
    ) -> None:
        self.db = db
        self.notifications = NotificationService(db)
        self.policy = policy or AccessPolicy()
        self.settings = settings or get_settings().workflow

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_exam(self, institution_id: str, exam_id: str) -> Exam:
        """Get an exam.

        Raises:
            ExamNotFoundError: If absent or owned by another institution.
        """
        return await self._get_exam(institution_id, exam_id)

    async def list_exams(
        self,
        institution_id: str,
        class_course_id: str | None = None,
        status: ExamStatus | None = None,
    ) -> list[Exam]:
        query = select(Exam).where(Exam.institution_id == institution_id)

        if class_course_id:
            query = query.where(Exam.class_course_id == class_course_id)
        if status is not None:
            query = query.where(Exam.status == status.value)

        query = query.order_by(Exam.date.asc(), Exam.created_at.asc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    # =========================================================================
    # Authoring
    # =========================================================================

    async def create_exam(
        self,
        institution_id: str,
        request: ExamCreateRequest,
        actor: Actor,
    ) -> Exam:
        """Create a draft exam.

        The class-course row is locked for the duration of the check so
        concurrent creations cannot both pass the weight ceiling.

        Raises:
            ClassCourseNotFoundError: If the class-course is unknown.
            ExamAccessDeniedError: If the caller may not manage its exams.
            InvalidWeightError: If the weight is outside 1-100.
            WeightLimitExceededError: If the weights would exceed 100.
        """
        async with transaction(self.db):
            class_course = await self._get_class_course(
                institution_id, request.class_course_id, for_update=True
            )
            self._require_manage(actor, class_course)
            await self._check_weight(class_course.id, request.weight)

            exam = Exam(
                institution_id=institution_id,
                class_course_id=class_course.id,
                name=request.name,
                type=request.type,
                date=request.date,
                weight=request.weight,
                status=ExamStatus.DRAFT.value,
                is_locked=False,
            )
            self.db.add(exam)

        logger.info(
            "Created exam: exam=%s, class_course=%s, weight=%s, by=%s",
            exam.id,
            exam.class_course_id,
            exam.weight,
            actor.id,
        )
        return exam

    async def update_exam(
        self,
        institution_id: str,
        exam_id: str,
        request: ExamUpdateRequest,
        actor: Actor,
    ) -> Exam:
        """Apply a partial update.

        Raises:
            ExamNotFoundError: If the exam is unknown.
            ExamLockedError: If the exam is locked.
            InvalidWeightError: If the new weight is outside 1-100.
            WeightLimitExceededError: If the new weight breaks the ceiling.
        """
        async with transaction(self.db):
            exam, class_course = await self._lock_exam_for_edit(institution_id, exam_id)
            self._require_manage(actor, class_course)

            changes = request.model_dump(exclude_unset=True, exclude_none=True)
            if "weight" in changes and changes["weight"] != exam.weight:
                await self._check_weight(class_course.id, changes["weight"], exclude_exam_id=exam.id)

            for field, value in changes.items():
                setattr(exam, field, value)

        logger.info("Updated exam: exam=%s, fields=%s, by=%s", exam.id, sorted(changes), actor.id)
        return exam

    async def delete_exam(self, institution_id: str, exam_id: str, actor: Actor) -> None:
        """Delete an unlocked exam together with its grades.

        Raises:
            ExamNotFoundError: If the exam is unknown.
            ExamLockedError: If the exam is locked.
        """
        async with transaction(self.db):
            exam, class_course = await self._lock_exam_for_edit(institution_id, exam_id)
            self._require_manage(actor, class_course)

            await self.db.execute(delete(Grade).where(Grade.exam_id == exam.id))
            await self.db.delete(exam)

        logger.info("Deleted exam: exam=%s, by=%s", exam_id, actor.id)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def schedule_exam(
        self,
        institution_id: str,
        exam_id: str,
        actor: Actor,
        scheduled_at: datetime | None = None,
    ) -> Exam:
        """Move a draft exam to scheduled.

        Raises:
            InvalidExamTransitionError: If the exam is not a draft.
        """
        async with transaction(self.db):
            exam = await self._get_exam(institution_id, exam_id, for_update=True)
            class_course = await self._get_class_course(institution_id, exam.class_course_id)
            self._require_manage(actor, class_course)

            previous = transition(exam, ExamStatus.SCHEDULED)
            exam.scheduled_by = actor.id
            exam.scheduled_at = scheduled_at or utc_now()

        self._log_transition(exam, previous, actor)
        return exam

    async def submit_exam(self, institution_id: str, exam_id: str, actor: Actor) -> Exam:
        """Submit a draft or scheduled exam for validation.

        Raises:
            InvalidExamTransitionError: From any other state.
        """
        async with transaction(self.db):
            exam = await self._get_exam(institution_id, exam_id, for_update=True)
            class_course = await self._get_class_course(institution_id, exam.class_course_id)
            self._require_manage(actor, class_course)

            previous = transition(exam, ExamStatus.SUBMITTED)
            exam.submitted_by = actor.id
            exam.submitted_at = utc_now()
            self._notify_transition(exam, NotificationType.EXAM_SUBMITTED, previous, actor.id)

        self._log_transition(exam, previous, actor)
        return exam

    async def validate_exam(
        self,
        institution_id: str,
        exam_id: str,
        actor: Actor,
        approver_id: str | None = None,
    ) -> Exam:
        """Approve a submitted exam's grades.

        Args:
            approver_id: Validator to record; defaults to the caller.

        Raises:
            InvalidExamTransitionError: If the exam is not submitted.
        """
        async with transaction(self.db):
            exam = await self._get_exam(institution_id, exam_id, for_update=True)

            previous = transition(exam, ExamStatus.APPROVED)
            exam.validated_by = approver_id or actor.id
            exam.validated_at = utc_now()
            self._notify_transition(
                exam,
                NotificationType.GRADE_VALIDATED,
                previous,
                actor.id,
                approver_id=exam.validated_by,
            )

        self._log_transition(exam, previous, actor)
        return exam

    async def set_lock(
        self,
        institution_id: str,
        exam_id: str,
        lock: bool,
        actor: Actor,
    ) -> Exam:
        """Lock or unlock an exam.

        Locking freezes the exam's grades. It moves an approved exam to
        ``locked``; re-locking an already locked exam changes nothing.
        Unlocking clears the flag only and keeps the status.

        Raises:
            ExamAccessDeniedError: If the caller is not an admin, or unlocks
                without the unlock capability.
            ExamNotApprovedError: If locking an exam that is not approved.
        """
        if not actor.is_admin:
            raise ExamAccessDeniedError("Only administrators can lock or unlock exams")
        if not lock and not self.policy.can_unlock_exams(actor):
            raise ExamAccessDeniedError("Unlocking an exam requires the exams.unlock permission")

        async with transaction(self.db):
            exam = await self._get_exam(institution_id, exam_id, for_update=True)

            if lock:
                if exam.is_locked:
                    return exam
                self._lock(exam, actor.id, reason="manual")
            else:
                if not exam.is_locked:
                    return exam
                exam.is_locked = False
                self._notify_transition(
                    exam, NotificationType.EXAM_UNLOCKED, exam.exam_status, actor.id
                )

        logger.info(
            "Exam lock changed: exam=%s, locked=%s, status=%s, by=%s",
            exam.id,
            exam.is_locked,
            exam.status,
            actor.id,
        )
        return exam

    async def close_expired(
        self,
        now: datetime | None = None,
        grace: timedelta | None = None,
        batch_size: int | None = None,
    ) -> list[str]:
        """Lock approved exams whose validation is older than the grace window.

        Runs across all institutions. Already locked exams never match, so
        repeated runs are no-ops once the backlog is cleared.

        Returns:
            IDs of the exams locked by this run.
        """
        cutoff = (now or utc_now()) - (grace if grace is not None else self.settings.exam_lock_grace)
        limit = batch_size or self.settings.close_expired_batch_size

        async with transaction(self.db):
            result = await self.db.execute(
                select(Exam)
                .where(
                    Exam.status == ExamStatus.APPROVED.value,
                    Exam.is_locked.is_(False),
                    Exam.validated_at.is_not(None),
                    Exam.validated_at <= cutoff,
                )
                .order_by(Exam.validated_at.asc())
                .limit(limit)
                .with_for_update(skip_locked=True)
            )
            exams = list(result.scalars().all())

            for exam in exams:
                self._lock(exam, SYSTEM_ACTOR.id, reason="expired")

        locked_ids = [exam.id for exam in exams]
        if locked_ids:
            logger.info("Auto-locked %d expired exams: %s", len(locked_ids), locked_ids)
        return locked_ids

    # =========================================================================
    # Helpers
    # =========================================================================

    def _lock(self, exam: Exam, actor_id: str, reason: str) -> None:
        previous = exam.exam_status
        if previous != ExamStatus.LOCKED:
            try:
                transition(exam, ExamStatus.LOCKED)
            except InvalidStateError as e:
                raise ExamNotApprovedError(
                    "Only approved exams can be locked", code="exam_not_approved"
                ) from e
        exam.is_locked = True
        exam.locked_at = utc_now()
        self._notify_transition(
            exam, NotificationType.EXAM_LOCKED, previous, actor_id, reason=reason
        )

    def _notify_transition(
        self,
        exam: Exam,
        notification_type: NotificationType,
        previous: ExamStatus,
        actor_id: str,
        **extra: object,
    ) -> None:
        self.notifications.enqueue(
            exam.institution_id,
            notification_type,
            {
                "exam_id": exam.id,
                "class_course_id": exam.class_course_id,
                "previous_status": previous.value,
                "status": exam.status,
                "is_locked": exam.is_locked,
                "actor_id": actor_id,
                **extra,
            },
        )

    def _log_transition(self, exam: Exam, previous: ExamStatus, actor: Actor) -> None:
        logger.info(
            "Exam transition: exam=%s, %s -> %s, by=%s",
            exam.id,
            previous.value,
            exam.status,
            actor.id,
        )

    def _require_manage(self, actor: Actor, class_course: ClassCourse) -> None:
        if not self.policy.can_manage_exams(actor, class_course):
            raise ExamAccessDeniedError("Not allowed to manage exams for this class course")

    async def _check_weight(
        self,
        class_course_id: str,
        weight: float,
        exclude_exam_id: str | None = None,
    ) -> None:
        if not MIN_EXAM_WEIGHT <= weight <= MAX_TOTAL_WEIGHT:
            raise InvalidWeightError(
                f"Exam weight must be between {MIN_EXAM_WEIGHT:g} and {MAX_TOTAL_WEIGHT:g}",
                code="invalid_weight",
            )

        query = select(func.coalesce(func.sum(Exam.weight), 0)).where(
            Exam.class_course_id == class_course_id
        )
        if exclude_exam_id:
            query = query.where(Exam.id != exclude_exam_id)

        current_total = float((await self.db.execute(query)).scalar_one())
        if round(current_total + weight, 2) > MAX_TOTAL_WEIGHT:
            raise WeightLimitExceededError(
                "Percentage exceeds 100", code="weight_limit_exceeded"
            )

    async def _lock_exam_for_edit(
        self, institution_id: str, exam_id: str
    ) -> tuple[Exam, ClassCourse]:
        # Class-course before exam, the same order create_exam uses
        exam = await self._get_exam(institution_id, exam_id)
        class_course = await self._get_class_course(
            institution_id, exam.class_course_id, for_update=True
        )
        exam = await self._get_exam(institution_id, exam_id, for_update=True)
        if exam.is_locked:
            raise ExamLockedError("Exam is locked", code="exam_locked")
        return exam, class_course

    async def _get_exam(
        self, institution_id: str, exam_id: str, for_update: bool = False
    ) -> Exam:
        query = select(Exam).where(
            Exam.id == exam_id,
            Exam.institution_id == institution_id,
        )
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)

        exam = (await self.db.execute(query)).scalar_one_or_none()
        if not exam:
            raise ExamNotFoundError(f"Exam {exam_id} not found")
        return exam

    async def _get_class_course(
        self, institution_id: str, class_course_id: str, for_update: bool = False
    ) -> ClassCourse:
        query = select(ClassCourse).where(
            ClassCourse.id == class_course_id,
            ClassCourse.institution_id == institution_id,
        )
        if for_update:
            query = query.with_for_update()

        class_course = (await self.db.execute(query)).scalar_one_or_none()
        if not class_course:
            raise ClassCourseNotFoundError(f"Class course {class_course_id} not found")
        return class_course
