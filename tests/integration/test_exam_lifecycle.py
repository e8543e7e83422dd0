# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the exam lifecycle service."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from src.domains.exam.service import (
    ClassCourseNotFoundError,
    ExamAccessDeniedError,
    ExamLockedError,
    ExamNotApprovedError,
    ExamNotFoundError,
    ExamService,
    InvalidWeightError,
    WeightLimitExceededError,
)
from src.domains.exam.state import InvalidExamTransitionError
from src.domains.grade.service import GradeService
from src.domains.workflow.service import WorkflowService
from src.infrastructure.database.models import (
    Exam,
    ExamStatus,
    Grade,
    Notification,
    NotificationType,
)
from src.models.exam import ExamCreateRequest, ExamUpdateRequest
from src.models.grade import GradeUpsertRequest
from src.models.workflow import ValidateGradesRequest
from src.utils.datetime import utc_now

pytestmark = pytest.mark.integration


def exam_request(seed, exam_date, weight: float, name: str = "Midterm") -> ExamCreateRequest:
    return ExamCreateRequest(
        name=name,
        type="written",
        date=exam_date,
        weight=weight,
        class_course_id=seed.class_course_id,
    )


async def notifications_of_type(session, notification_type: NotificationType) -> list[Notification]:
    result = await session.execute(
        select(Notification)
        .where(Notification.type == notification_type.value)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def approved_exam(db_session, seed, exam_date, teacher, admin) -> Exam:
    exams = ExamService(db_session)
    exam = await exams.create_exam(seed.institution_id, exam_request(seed, exam_date, 40), teacher)
    await exams.submit_exam(seed.institution_id, exam.id, teacher)
    return await WorkflowService(db_session).validate_grades(
        seed.institution_id, ValidateGradesRequest(exam_id=exam.id), admin
    )


class TestExamWeights:
    """Tests for the per class-course weight ceiling."""

    @pytest.mark.asyncio
    async def test_weights_fill_up_to_one_hundred(self, db_session, seed, exam_date, teacher) -> None:
        exams = ExamService(db_session)

        await exams.create_exam(seed.institution_id, exam_request(seed, exam_date, 60), teacher)

        with pytest.raises(WeightLimitExceededError) as exc_info:
            await exams.create_exam(
                seed.institution_id, exam_request(seed, exam_date, 50, "Final"), teacher
            )
        assert exc_info.value.message == "Percentage exceeds 100"
        assert exc_info.value.status_code == 400

        await exams.create_exam(seed.institution_id, exam_request(seed, exam_date, 40, "Final"), teacher)

        listed = await exams.list_exams(seed.institution_id, class_course_id=seed.class_course_id)
        assert sum(exam.weight for exam in listed) == 100
        assert all(exam.status == ExamStatus.DRAFT.value for exam in listed)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("weight", [0, 0.5, 101])
    async def test_weight_out_of_range(self, db_session, seed, exam_date, teacher, weight) -> None:
        with pytest.raises(InvalidWeightError):
            await ExamService(db_session).create_exam(
                seed.institution_id, exam_request(seed, exam_date, weight), teacher
            )

    @pytest.mark.asyncio
    async def test_update_excludes_own_weight(self, db_session, seed, exam_date, teacher) -> None:
        exams = ExamService(db_session)
        first = await exams.create_exam(seed.institution_id, exam_request(seed, exam_date, 60), teacher)
        await exams.create_exam(seed.institution_id, exam_request(seed, exam_date, 30, "Quiz"), teacher)

        updated = await exams.update_exam(
            seed.institution_id, first.id, ExamUpdateRequest(weight=70), teacher
        )
        assert updated.weight == 70

        with pytest.raises(WeightLimitExceededError):
            await exams.update_exam(
                seed.institution_id, first.id, ExamUpdateRequest(weight=71), teacher
            )

    @pytest.mark.asyncio
    async def test_unknown_class_course(self, db_session, seed, exam_date, teacher) -> None:
        request = exam_request(seed, exam_date, 20)
        request.class_course_id = seed.other_class_course_id

        with pytest.raises(ClassCourseNotFoundError):
            await ExamService(db_session).create_exam(seed.institution_id, request, teacher)

    @pytest.mark.asyncio
    async def test_unassigned_teacher_cannot_create(
        self, db_session, seed, exam_date, other_teacher
    ) -> None:
        with pytest.raises(ExamAccessDeniedError):
            await ExamService(db_session).create_exam(
                seed.institution_id, exam_request(seed, exam_date, 20), other_teacher
            )


class TestExamTransitions:
    """Tests for submit, validate and lock."""

    @pytest.mark.asyncio
    async def test_schedule_then_submit(self, db_session, seed, exam_date, teacher) -> None:
        exams = ExamService(db_session)
        exam = await exams.create_exam(seed.institution_id, exam_request(seed, exam_date, 20), teacher)

        exam = await exams.schedule_exam(seed.institution_id, exam.id, teacher)
        assert exam.status == ExamStatus.SCHEDULED.value
        assert exam.scheduled_by == teacher.id

        exam = await exams.submit_exam(seed.institution_id, exam.id, teacher)
        assert exam.status == ExamStatus.SUBMITTED.value
        assert exam.submitted_by == teacher.id

        submitted = await notifications_of_type(db_session, NotificationType.EXAM_SUBMITTED)
        assert len(submitted) == 1
        assert submitted[0].payload["exam_id"] == exam.id
        assert submitted[0].payload["previous_status"] == "scheduled"

    @pytest.mark.asyncio
    async def test_validate_draft_is_rejected(self, db_session, seed, exam_date, teacher, admin) -> None:
        exam = await ExamService(db_session).create_exam(
            seed.institution_id, exam_request(seed, exam_date, 20), teacher
        )

        with pytest.raises(InvalidExamTransitionError) as exc_info:
            await WorkflowService(db_session).validate_grades(
                seed.institution_id, ValidateGradesRequest(exam_id=exam.id), admin
            )
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_validation_records_approver(self, db_session, seed, exam_date, teacher, admin) -> None:
        exams = ExamService(db_session)
        exam = await exams.create_exam(seed.institution_id, exam_request(seed, exam_date, 20), teacher)
        await exams.submit_exam(seed.institution_id, exam.id, teacher)

        exam = await WorkflowService(db_session).validate_grades(
            seed.institution_id,
            ValidateGradesRequest(exam_id=exam.id, approver_id="dean-1"),
            admin,
        )

        assert exam.status == ExamStatus.APPROVED.value
        assert exam.validated_by == "dean-1"
        assert exam.validated_at is not None
        validated = await notifications_of_type(db_session, NotificationType.GRADE_VALIDATED)
        assert validated[0].payload["approver_id"] == "dean-1"

    @pytest.mark.asyncio
    async def test_lock_requires_approval(self, db_session, seed, exam_date, teacher, admin) -> None:
        exams = ExamService(db_session)
        exam = await exams.create_exam(seed.institution_id, exam_request(seed, exam_date, 20), teacher)
        exam_id = exam.id
        await exams.submit_exam(seed.institution_id, exam_id, teacher)

        with pytest.raises(ExamNotApprovedError):
            await exams.set_lock(seed.institution_id, exam_id, True, admin)

        exam = await exams.get_exam(seed.institution_id, exam_id)
        assert exam.is_locked is False

    @pytest.mark.asyncio
    async def test_teacher_cannot_lock(self, db_session, seed, exam_date, teacher, admin) -> None:
        exam = await approved_exam(db_session, seed, exam_date, teacher, admin)

        with pytest.raises(ExamAccessDeniedError):
            await ExamService(db_session).set_lock(seed.institution_id, exam.id, True, teacher)

    @pytest.mark.asyncio
    async def test_locked_exam_rejects_grade_writes(
        self, db_session, seed, exam_date, teacher, admin
    ) -> None:
        exams = ExamService(db_session)
        grades = GradeService(db_session)
        exam = await approved_exam(db_session, seed, exam_date, teacher, admin)

        grade = await grades.upsert_grade(
            seed.institution_id,
            GradeUpsertRequest(student_id=seed.student_id, exam_id=exam.id, score=14),
            teacher,
        )

        exam_id, grade_id = exam.id, grade.id

        exam = await exams.set_lock(seed.institution_id, exam_id, True, admin)
        assert exam.status == ExamStatus.LOCKED.value
        assert exam.is_locked is True

        with pytest.raises(ExamLockedError) as exc_info:
            await grades.upsert_grade(
                seed.institution_id,
                GradeUpsertRequest(student_id=seed.student_id, exam_id=exam_id, score=18),
                teacher,
            )
        assert exc_info.value.status_code == 403

        with pytest.raises(ExamLockedError):
            await grades.delete_grade(seed.institution_id, grade_id, admin)

        with pytest.raises(ExamLockedError):
            await exams.update_exam(
                seed.institution_id, exam_id, ExamUpdateRequest(name="Renamed"), admin
            )

        stored = (await db_session.execute(
            select(Grade).where(Grade.id == grade_id).execution_options(populate_existing=True)
        )).scalar_one()
        assert stored.score == 14

    @pytest.mark.asyncio
    async def test_locked_exam_cannot_be_deleted(
        self, db_session, seed, exam_date, teacher, admin
    ) -> None:
        exams = ExamService(db_session)
        exam = await approved_exam(db_session, seed, exam_date, teacher, admin)
        await GradeService(db_session).upsert_grade(
            seed.institution_id,
            GradeUpsertRequest(student_id=seed.student_id, exam_id=exam.id, score=12),
            teacher,
        )
        exam_id = exam.id
        await exams.set_lock(seed.institution_id, exam_id, True, admin)

        with pytest.raises(ExamLockedError) as exc_info:
            await exams.delete_exam(seed.institution_id, exam_id, admin)
        assert exc_info.value.status_code == 403

        exam = await exams.get_exam(seed.institution_id, exam_id)
        assert exam.is_locked is True
        grades = await GradeService(db_session).list_by_exam(seed.institution_id, exam_id)
        assert [g.score for g in grades] == [12]

    @pytest.mark.asyncio
    async def test_relock_is_a_no_op(self, db_session, seed, exam_date, teacher, admin) -> None:
        exams = ExamService(db_session)
        exam = await approved_exam(db_session, seed, exam_date, teacher, admin)
        await exams.set_lock(seed.institution_id, exam.id, True, admin)

        await exams.set_lock(seed.institution_id, exam.id, True, admin)

        locked = await notifications_of_type(db_session, NotificationType.EXAM_LOCKED)
        assert len(locked) == 1

    @pytest.mark.asyncio
    async def test_unlock_requires_capability(
        self, db_session, seed, exam_date, teacher, admin, super_admin
    ) -> None:
        exams = ExamService(db_session)
        exam = await approved_exam(db_session, seed, exam_date, teacher, admin)
        await exams.set_lock(seed.institution_id, exam.id, True, admin)

        with pytest.raises(ExamAccessDeniedError):
            await exams.set_lock(seed.institution_id, exam.id, False, admin)

        exam = await exams.set_lock(seed.institution_id, exam.id, False, super_admin)
        assert exam.is_locked is False
        assert exam.status == ExamStatus.LOCKED.value

        grade = await GradeService(db_session).upsert_grade(
            seed.institution_id,
            GradeUpsertRequest(student_id=seed.student_id, exam_id=exam.id, score=12),
            teacher,
        )
        assert grade.score == 12

    @pytest.mark.asyncio
    async def test_delete_removes_grades(self, db_session, seed, exam_date, teacher, admin) -> None:
        exams = ExamService(db_session)
        exam = await approved_exam(db_session, seed, exam_date, teacher, admin)
        await GradeService(db_session).upsert_grade(
            seed.institution_id,
            GradeUpsertRequest(student_id=seed.student_id, exam_id=exam.id, score=10),
            teacher,
        )

        await exams.delete_exam(seed.institution_id, exam.id, admin)

        with pytest.raises(ExamNotFoundError):
            await exams.get_exam(seed.institution_id, exam.id)
        remaining = await GradeService(db_session).list_by_exam(seed.institution_id, exam.id)
        assert remaining == []


class TestCloseExpired:
    """Tests for the expiry sweep."""

    @pytest.mark.asyncio
    async def test_locks_exams_past_grace(self, db_session, seed, exam_date, teacher, admin) -> None:
        exams = ExamService(db_session)
        exam = await approved_exam(db_session, seed, exam_date, teacher, admin)

        assert await exams.close_expired(now=utc_now() + timedelta(hours=71)) == []

        locked = await exams.close_expired(now=utc_now() + timedelta(hours=73))
        assert locked == [exam.id]

        exam = await exams.get_exam(seed.institution_id, exam.id)
        assert exam.status == ExamStatus.LOCKED.value
        assert exam.is_locked is True

        events = await notifications_of_type(db_session, NotificationType.EXAM_LOCKED)
        assert len(events) == 1
        assert events[0].payload["reason"] == "expired"
        assert events[0].payload["actor_id"] == "system"

    @pytest.mark.asyncio
    async def test_second_run_is_a_no_op(self, db_session, seed, exam_date, teacher, admin) -> None:
        exams = ExamService(db_session)
        await approved_exam(db_session, seed, exam_date, teacher, admin)
        later = utc_now() + timedelta(days=4)

        first = await exams.close_expired(now=later)
        second = await exams.close_expired(now=later)

        assert len(first) == 1
        assert second == []
        events = await notifications_of_type(db_session, NotificationType.EXAM_LOCKED)
        assert len(events) == 1

    @pytest.mark.asyncio
    async def test_ignores_unapproved_exams(self, db_session, seed, exam_date, teacher) -> None:
        exams = ExamService(db_session)
        exam = await exams.create_exam(seed.institution_id, exam_request(seed, exam_date, 20), teacher)
        await exams.submit_exam(seed.institution_id, exam.id, teacher)

        assert await exams.close_expired(now=utc_now() + timedelta(days=30)) == []


class TestTenantIsolation:
    """Exams of another institution are invisible."""

    @pytest.mark.asyncio
    async def test_cross_institution_lookup_is_not_found(
        self, db_session, seed, exam_date, teacher, admin
    ) -> None:
        exams = ExamService(db_session)
        exam = await exams.create_exam(seed.institution_id, exam_request(seed, exam_date, 20), teacher)

        with pytest.raises(ExamNotFoundError):
            await exams.get_exam(seed.other_institution_id, exam.id)
        with pytest.raises(ExamNotFoundError):
            await exams.submit_exam(seed.other_institution_id, exam.id, admin)

        assert await exams.list_exams(seed.other_institution_id) == []
