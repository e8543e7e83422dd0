# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade API endpoints.

- PUT / - Create or update the grade of a student for an exam
- GET / - List grades of an exam or of a student
- PATCH /{grade_id} - Update a grade's score
- DELETE /{grade_id} - Delete a grade
- GET /class-courses/{class_course_id} - Page through a class-course's grades
- GET /exams/{exam_id}/average - Mean score of an exam
- GET /courses/{course_id}/average - Mean score of a course, optionally for one student
- GET /students/{student_id}/transcript - Per-course weighted averages of a student

Every write is rejected with 403 once the exam is locked.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import DB, AuthenticatedUser, InstitutionId
from src.domains.grade.service import DEFAULT_PAGE_SIZE, GradeService
from src.models.grade import (
    GradeAverageResponse,
    GradePageResponse,
    GradeResponse,
    GradeUpdateRequest,
    GradeUpsertRequest,
    StudentTranscriptResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> GradeService:
    return GradeService(db=db)


@router.put(
    "",
    response_model=GradeResponse,
    summary="Upsert grade",
    description="Create or update the grade of a student for an exam. Scores range 0-20.",
)
async def upsert_grade(
    data: GradeUpsertRequest,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
) -> GradeResponse:
    grade = await _get_service(db).upsert_grade(institution_id, data, current_user)
    return GradeResponse.model_validate(grade)


@router.get(
    "",
    response_model=list[GradeResponse],
    summary="List grades",
    description="List grades of one exam or of one student.",
)
async def list_grades(
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
    exam_id: Annotated[str | None, Query(description="Filter by exam")] = None,
    student_id: Annotated[str | None, Query(description="Filter by student")] = None,
) -> list[GradeResponse]:
    service = _get_service(db)

    if exam_id:
        grades = await service.list_by_exam(institution_id, exam_id)
        if student_id:
            grades = [grade for grade in grades if grade.student_id == student_id]
    elif student_id:
        grades = await service.list_by_student(institution_id, student_id)
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either exam_id or student_id is required",
        )

    return [GradeResponse.model_validate(grade) for grade in grades]


@router.patch(
    "/{grade_id}",
    response_model=GradeResponse,
    summary="Update grade",
)
async def update_grade(
    grade_id: str,
    data: GradeUpdateRequest,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
) -> GradeResponse:
    grade = await _get_service(db).update_grade(institution_id, grade_id, data.score, current_user)
    return GradeResponse.model_validate(grade)


@router.delete(
    "/{grade_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete grade",
)
async def delete_grade(
    grade_id: str,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
) -> Response:
    await _get_service(db).delete_grade(institution_id, grade_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/class-courses/{class_course_id}",
    response_model=GradePageResponse,
    summary="List class-course grades",
    description="Page through the grades of every exam of a class-course, ordered by grade ID.",
)
async def list_class_course_grades(
    class_course_id: str,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
    cursor: Annotated[str | None, Query(description="Last grade ID of the previous page")] = None,
    limit: Annotated[int, Query(ge=1, le=200, description="Page size")] = DEFAULT_PAGE_SIZE,
) -> GradePageResponse:
    page = await _get_service(db).list_by_class_course(
        institution_id, class_course_id, cursor=cursor, limit=limit
    )
    return GradePageResponse.model_validate(page)


@router.get(
    "/exams/{exam_id}/average",
    response_model=GradeAverageResponse,
    summary="Exam average",
)
async def exam_average(
    exam_id: str,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
) -> GradeAverageResponse:
    average = await _get_service(db).average_for_exam(institution_id, exam_id)
    return GradeAverageResponse(average=average)


@router.get(
    "/courses/{course_id}/average",
    response_model=GradeAverageResponse,
    summary="Course average",
    description="Mean score over every exam of a course, or over one student's grades "
    "when student_id is given.",
)
async def course_average(
    course_id: str,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
    student_id: Annotated[str | None, Query(description="Restrict to one student")] = None,
) -> GradeAverageResponse:
    average = await _get_service(db).average_for_course(
        institution_id, course_id, student_id=student_id
    )
    return GradeAverageResponse(average=average)


@router.get(
    "/students/{student_id}/transcript",
    response_model=StudentTranscriptResponse,
    summary="Student transcript",
    description="Weighted average per course and the credit-weighted overall average.",
)
async def student_transcript(
    student_id: str,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
) -> StudentTranscriptResponse:
    transcript = await _get_service(db).student_transcript(institution_id, student_id)
    return StudentTranscriptResponse.model_validate(transcript)
