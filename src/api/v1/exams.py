# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam API endpoints.

This module provides endpoints for the exam lifecycle:
- POST / - Create an exam (draft)
- GET / - List exams with filtering
- GET /{exam_id} - Get exam details
- PATCH /{exam_id} - Update an exam
- DELETE /{exam_id} - Delete an exam and its grades
- POST /{exam_id}/schedule - Schedule a draft exam
- POST /{exam_id}/submit - Submit an exam's grades
- POST /{exam_id}/lock - Lock or unlock an exam

Domain errors are mapped to HTTP statuses by the application's
DomainError handler.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import DB, AuthenticatedUser, InstitutionId
from src.domains.exam.service import ExamService
from src.infrastructure.database.models import ExamStatus
from src.models.exam import (
    ExamCreateRequest,
    ExamLockRequest,
    ExamResponse,
    ExamScheduleRequest,
    ExamUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> ExamService:
    """Get exam service instance.

    Args:
        db: Database session.

    Returns:
        Configured ExamService instance.
    """
    return ExamService(db=db)


@router.post(
    "",
    response_model=ExamResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create exam",
    description="Create a draft exam. The class-course's exam weights may not exceed 100.",
)
async def create_exam(
    data: ExamCreateRequest,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
) -> ExamResponse:
    logger.info(
        "Creating exam: %s (weight %s) in class course %s by %s",
        data.name,
        data.weight,
        data.class_course_id,
        current_user.id,
    )
    exam = await _get_service(db).create_exam(institution_id, data, current_user)
    return ExamResponse.model_validate(exam)


@router.get(
    "",
    response_model=list[ExamResponse],
    summary="List exams",
)
async def list_exams(
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
    class_course_id: Annotated[str | None, Query(description="Filter by class course")] = None,
    exam_status: Annotated[
        ExamStatus | None, Query(alias="status", description="Filter by status")
    ] = None,
) -> list[ExamResponse]:
    exams = await _get_service(db).list_exams(
        institution_id,
        class_course_id=class_course_id,
        status=exam_status,
    )
    return [ExamResponse.model_validate(exam) for exam in exams]


@router.get(
    "/{exam_id}",
    response_model=ExamResponse,
    summary="Get exam",
)
async def get_exam(
    exam_id: str,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
) -> ExamResponse:
    exam = await _get_service(db).get_exam(institution_id, exam_id)
    return ExamResponse.model_validate(exam)


@router.patch(
    "/{exam_id}",
    response_model=ExamResponse,
    summary="Update exam",
    description="Update an exam. Locked exams cannot be changed.",
)
async def update_exam(
    exam_id: str,
    data: ExamUpdateRequest,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
) -> ExamResponse:
    exam = await _get_service(db).update_exam(institution_id, exam_id, data, current_user)
    return ExamResponse.model_validate(exam)


@router.delete(
    "/{exam_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete exam",
    description="Delete an exam and its grades. Locked exams cannot be deleted.",
)
async def delete_exam(
    exam_id: str,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
) -> Response:
    await _get_service(db).delete_exam(institution_id, exam_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{exam_id}/schedule",
    response_model=ExamResponse,
    summary="Schedule exam",
)
async def schedule_exam(
    exam_id: str,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
    data: ExamScheduleRequest | None = None,
) -> ExamResponse:
    exam = await _get_service(db).schedule_exam(
        institution_id,
        exam_id,
        current_user,
        scheduled_at=data.scheduled_at if data else None,
    )
    return ExamResponse.model_validate(exam)


@router.post(
    "/{exam_id}/submit",
    response_model=ExamResponse,
    summary="Submit exam",
    description="Submit a draft or scheduled exam's grades for validation.",
)
async def submit_exam(
    exam_id: str,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
) -> ExamResponse:
    exam = await _get_service(db).submit_exam(institution_id, exam_id, current_user)
    return ExamResponse.model_validate(exam)


@router.post(
    "/{exam_id}/lock",
    response_model=ExamResponse,
    summary="Lock or unlock exam",
    description="Lock an approved exam, or unlock it with the exams.unlock permission.",
)
async def lock_exam(
    exam_id: str,
    data: ExamLockRequest,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
) -> ExamResponse:
    exam = await _get_service(db).set_lock(institution_id, exam_id, data.lock, current_user)
    return ExamResponse.model_validate(exam)
