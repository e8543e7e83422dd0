# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the grade register."""

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from src.domains.enrollment.service import EnrollmentService
from src.domains.exam.service import ClassCourseNotFoundError, ExamNotFoundError, ExamService
from src.domains.grade.service import (
    CourseNotFoundError,
    GradeAccessDeniedError,
    GradeNotFoundError,
    GradeService,
    InvalidScoreError,
    StudentNotFoundError,
    StudentNotRegisteredError,
)
from src.infrastructure.database.models import EnrollmentStatus, Grade
from src.models.enrollment import EnrollRequest
from src.models.exam import ExamCreateRequest
from src.models.grade import GradeUpsertRequest
from src.utils.datetime import ensure_utc

pytestmark = pytest.mark.integration


@pytest_asyncio.fixture
async def exam(db_session, seed, exam_date, teacher):
    return await ExamService(db_session).create_exam(
        seed.institution_id,
        ExamCreateRequest(
            name="Midterm",
            type="written",
            date=exam_date,
            weight=50,
            class_course_id=seed.class_course_id,
        ),
        teacher,
    )


class TestUpsertGrade:
    """Tests for GradeService.upsert_grade."""

    @pytest.mark.asyncio
    async def test_upsert_keeps_one_row(self, db_session, seed, exam, teacher) -> None:
        grades = GradeService(db_session)
        request = GradeUpsertRequest(student_id=seed.student_id, exam_id=exam.id, score=11)

        first = await grades.upsert_grade(seed.institution_id, request, teacher)
        first_id, first_stamp = first.id, ensure_utc(first.updated_at)

        request.score = 15.5
        second = await grades.upsert_grade(seed.institution_id, request, teacher)
        second_stamp = ensure_utc(second.updated_at)
        third = await grades.upsert_grade(seed.institution_id, request, teacher)

        assert second.id == first_id
        assert third.id == first_id
        assert third.score == 15.5
        assert second_stamp > first_stamp
        assert ensure_utc(third.updated_at) > second_stamp

        count = await db_session.scalar(
            select(func.count()).select_from(Grade).where(Grade.exam_id == exam.id)
        )
        assert count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("score", [-0.5, 20.01, 100])
    async def test_score_out_of_range(self, db_session, seed, exam, teacher, score) -> None:
        with pytest.raises(InvalidScoreError) as exc_info:
            await GradeService(db_session).upsert_grade(
                seed.institution_id,
                GradeUpsertRequest(student_id=seed.student_id, exam_id=exam.id, score=score),
                teacher,
            )
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("score", [0, 20])
    async def test_score_bounds_are_inclusive(self, db_session, seed, exam, teacher, score) -> None:
        grade = await GradeService(db_session).upsert_grade(
            seed.institution_id,
            GradeUpsertRequest(student_id=seed.student_id, exam_id=exam.id, score=score),
            teacher,
        )
        assert grade.score == score

    @pytest.mark.asyncio
    async def test_unregistered_student_is_forbidden(self, db_session, seed, exam, teacher) -> None:
        with pytest.raises(StudentNotRegisteredError) as exc_info:
            await GradeService(db_session).upsert_grade(
                seed.institution_id,
                GradeUpsertRequest(
                    student_id=seed.unregistered_student_id, exam_id=exam.id, score=10
                ),
                teacher,
            )
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_student(self, db_session, seed, exam, teacher) -> None:
        with pytest.raises(StudentNotFoundError):
            await GradeService(db_session).upsert_grade(
                seed.institution_id,
                GradeUpsertRequest(student_id=seed.other_student_id, exam_id=exam.id, score=10),
                teacher,
            )

    @pytest.mark.asyncio
    async def test_unassigned_teacher_is_forbidden(
        self, db_session, seed, exam, other_teacher
    ) -> None:
        with pytest.raises(GradeAccessDeniedError):
            await GradeService(db_session).upsert_grade(
                seed.institution_id,
                GradeUpsertRequest(student_id=seed.student_id, exam_id=exam.id, score=10),
                other_teacher,
            )

    @pytest.mark.asyncio
    async def test_other_institution_cannot_see_exam(self, db_session, seed, exam, admin) -> None:
        with pytest.raises(ExamNotFoundError):
            await GradeService(db_session).upsert_grade(
                seed.other_institution_id,
                GradeUpsertRequest(student_id=seed.other_student_id, exam_id=exam.id, score=10),
                admin,
            )


class TestGradeEdits:
    """Tests for update, delete and listing."""

    @pytest.mark.asyncio
    async def test_update_and_delete(self, db_session, seed, exam, teacher) -> None:
        grades = GradeService(db_session)
        grade = await grades.upsert_grade(
            seed.institution_id,
            GradeUpsertRequest(student_id=seed.student_id, exam_id=exam.id, score=9),
            teacher,
        )
        grade_id = grade.id

        updated = await grades.update_grade(seed.institution_id, grade_id, 13, teacher)
        assert updated.score == 13

        listed = await grades.list_by_student(seed.institution_id, seed.student_id)
        assert [g.id for g in listed] == [grade_id]

        await grades.delete_grade(seed.institution_id, grade_id, teacher)

        assert await grades.list_by_exam(seed.institution_id, exam.id) == []
        with pytest.raises(GradeNotFoundError):
            await grades.update_grade(seed.institution_id, grade_id, 14, teacher)


async def enroll_active(db_session, seed, student_id: str, class_course_id: str) -> None:
    await EnrollmentService(db_session).enroll(
        seed.institution_id,
        EnrollRequest(
            student_id=student_id,
            class_course_id=class_course_id,
            status=EnrollmentStatus.ACTIVE,
        ),
        "registrar-1",
    )


async def create_exam(db_session, seed, exam_date, teacher, class_course_id, weight, name):
    return await ExamService(db_session).create_exam(
        seed.institution_id,
        ExamCreateRequest(
            name=name,
            type="written",
            date=exam_date,
            weight=weight,
            class_course_id=class_course_id,
        ),
        teacher,
    )


async def record(grades: GradeService, seed, student_id: str, exam_id: str, score, teacher):
    return await grades.upsert_grade(
        seed.institution_id,
        GradeUpsertRequest(student_id=student_id, exam_id=exam_id, score=score),
        teacher,
    )


class TestGradeReads:
    """Tests for class-course listing, averages and the transcript."""

    @pytest.mark.asyncio
    async def test_exam_and_course_averages(
        self, db_session, seed, exam, exam_date, teacher
    ) -> None:
        grades = GradeService(db_session)
        await enroll_active(db_session, seed, seed.unregistered_student_id, seed.class_course_id)
        final = await create_exam(
            db_session, seed, exam_date, teacher, seed.class_course_id, 50, "Final"
        )
        ungraded = await create_exam(
            db_session, seed, exam_date, teacher, seed.open_class_course_id, 30, "Quiz"
        )

        await record(grades, seed, seed.student_id, exam.id, 12, teacher)
        await record(grades, seed, seed.unregistered_student_id, exam.id, 16, teacher)
        await record(grades, seed, seed.student_id, final.id, 18, teacher)

        assert await grades.average_for_exam(seed.institution_id, exam.id) == pytest.approx(14.0)
        assert await grades.average_for_exam(seed.institution_id, ungraded.id) is None
        assert await grades.average_for_course(seed.institution_id, seed.course_id) == (
            pytest.approx(46 / 3)
        )
        assert await grades.average_for_course(
            seed.institution_id, seed.course_id, student_id=seed.student_id
        ) == pytest.approx(15.0)
        assert await grades.average_for_course(seed.institution_id, seed.open_course_id) is None

    @pytest.mark.asyncio
    async def test_averages_are_scoped_to_the_institution(
        self, db_session, seed, exam
    ) -> None:
        grades = GradeService(db_session)

        with pytest.raises(ExamNotFoundError):
            await grades.average_for_exam(seed.other_institution_id, exam.id)
        with pytest.raises(CourseNotFoundError):
            await grades.average_for_course(seed.other_institution_id, seed.course_id)
        with pytest.raises(StudentNotFoundError):
            await grades.average_for_course(
                seed.institution_id, seed.course_id, student_id=seed.other_student_id
            )

    @pytest.mark.asyncio
    async def test_class_course_pages(self, db_session, seed, exam, exam_date, teacher) -> None:
        grades = GradeService(db_session)
        await enroll_active(db_session, seed, seed.unregistered_student_id, seed.class_course_id)
        final = await create_exam(
            db_session, seed, exam_date, teacher, seed.class_course_id, 50, "Final"
        )
        recorded = [
            await record(grades, seed, seed.student_id, exam.id, 10, teacher),
            await record(grades, seed, seed.unregistered_student_id, exam.id, 11, teacher),
            await record(grades, seed, seed.student_id, final.id, 12, teacher),
        ]
        expected = sorted(grade.id for grade in recorded)

        first = await grades.list_by_class_course(seed.institution_id, seed.class_course_id, limit=2)
        assert [g.id for g in first.items] == expected[:2]
        assert first.next_cursor == expected[1]

        second = await grades.list_by_class_course(
            seed.institution_id, seed.class_course_id, cursor=first.next_cursor, limit=2
        )
        assert [g.id for g in second.items] == expected[2:]
        assert second.next_cursor is None

        other = await grades.list_by_class_course(seed.institution_id, seed.open_class_course_id)
        assert other.items == []

        with pytest.raises(ClassCourseNotFoundError):
            await grades.list_by_class_course(seed.other_institution_id, seed.class_course_id)

    @pytest.mark.asyncio
    async def test_transcript_weights_exams_and_credits(
        self, db_session, seed, exam, exam_date, teacher
    ) -> None:
        grades = GradeService(db_session)
        await enroll_active(db_session, seed, seed.student_id, seed.open_class_course_id)
        final = await create_exam(
            db_session, seed, exam_date, teacher, seed.class_course_id, 50, "Final"
        )
        project = await create_exam(
            db_session, seed, exam_date, teacher, seed.open_class_course_id, 100, "Project"
        )

        await record(grades, seed, seed.student_id, exam.id, 12, teacher)
        await record(grades, seed, seed.student_id, final.id, 18, teacher)
        await record(grades, seed, seed.student_id, project.id, 10, teacher)

        transcript = await grades.student_transcript(seed.institution_id, seed.student_id)

        assert [c.course_code for c in transcript.courses] == ["CS101", "CS102"]
        assert [c.credits for c in transcript.courses] == [5, 6]
        assert transcript.courses[0].average == pytest.approx(15.0)
        assert transcript.courses[1].average == pytest.approx(10.0)
        assert transcript.total_credits == 11
        assert transcript.overall_average == pytest.approx(135 / 11)

    @pytest.mark.asyncio
    async def test_transcript_without_grades(self, db_session, seed) -> None:
        grades = GradeService(db_session)

        transcript = await grades.student_transcript(seed.institution_id, seed.unregistered_student_id)

        assert transcript.courses == []
        assert transcript.overall_average == 0.0

        with pytest.raises(StudentNotFoundError):
            await grades.student_transcript(seed.institution_id, seed.other_student_id)
