# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student course enrollment API endpoints.

This module provides endpoints for course enrollments:
- POST / - Enroll a student in a class-course
- POST /bulk - Enroll a student in several class-courses
- POST /close-for-student - Close a student's open enrollments
- GET / - List enrollments with filtering
- GET /{enrollment_id} - Get enrollment details
- PATCH /{enrollment_id}/status - Change an enrollment's status

Writes require admin access. Every status change updates the student's
credit ledger in the same transaction.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import DB, AdminUser, AuthenticatedUser, InstitutionId
from src.domains.enrollment.service import EnrollmentService
from src.infrastructure.database.models import EnrollmentStatus
from src.models.enrollment import (
    BulkEnrollRequest,
    BulkEnrollResponse,
    CloseForStudentRequest,
    CloseForStudentResponse,
    EnrollmentResponse,
    EnrollmentStatusUpdateRequest,
    EnrollRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> EnrollmentService:
    """Get enrollment service instance.

    Args:
        db: Database session.

    Returns:
        Configured EnrollmentService instance.
    """
    return EnrollmentService(db=db)


@router.post(
    "",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll student",
    description="Enroll a student in a class-course. Returns 200 with the "
    "existing record if the student is already enrolled for that attempt.",
)
async def enroll_student(
    data: EnrollRequest,
    response: Response,
    current_user: AdminUser,
    institution_id: InstitutionId,
    db: DB,
) -> EnrollmentResponse:
    enrollment, created = await _get_service(db).enroll(institution_id, data, current_user.id)
    if not created:
        response.status_code = status.HTTP_200_OK
    return EnrollmentResponse.model_validate(enrollment)


@router.post(
    "/bulk",
    response_model=BulkEnrollResponse,
    summary="Bulk enroll student",
    description="Enroll a student in several class-courses. Existing enrollments are skipped.",
)
async def bulk_enroll(
    data: BulkEnrollRequest,
    current_user: AdminUser,
    institution_id: InstitutionId,
    db: DB,
) -> BulkEnrollResponse:
    created, skipped = await _get_service(db).bulk_enroll(institution_id, data, current_user.id)
    return BulkEnrollResponse(
        created=[EnrollmentResponse.model_validate(e) for e in created],
        skipped=skipped,
    )


@router.post(
    "/close-for-student",
    response_model=CloseForStudentResponse,
    summary="Close student enrollments",
    description="Move every planned or active enrollment of a student to a final status.",
)
async def close_for_student(
    data: CloseForStudentRequest,
    current_user: AdminUser,
    institution_id: InstitutionId,
    db: DB,
) -> CloseForStudentResponse:
    closed = await _get_service(db).close_for_student(
        institution_id,
        data.student_id,
        status=data.status,
        closed_by=current_user.id,
    )
    return CloseForStudentResponse(closed=closed)


@router.get(
    "",
    response_model=list[EnrollmentResponse],
    summary="List enrollments",
)
async def list_enrollments(
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
    student_id: Annotated[str | None, Query(description="Filter by student")] = None,
    class_course_id: Annotated[str | None, Query(description="Filter by class course")] = None,
    enrollment_status: Annotated[
        EnrollmentStatus | None, Query(alias="status", description="Filter by status")
    ] = None,
) -> list[EnrollmentResponse]:
    enrollments = await _get_service(db).list_enrollments(
        institution_id,
        student_id=student_id,
        class_course_id=class_course_id,
        status=enrollment_status,
    )
    return [EnrollmentResponse.model_validate(e) for e in enrollments]


@router.get(
    "/{enrollment_id}",
    response_model=EnrollmentResponse,
    summary="Get enrollment",
)
async def get_enrollment(
    enrollment_id: str,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
) -> EnrollmentResponse:
    enrollment = await _get_service(db).get_enrollment(institution_id, enrollment_id)
    return EnrollmentResponse.model_validate(enrollment)


@router.patch(
    "/{enrollment_id}/status",
    response_model=EnrollmentResponse,
    summary="Update enrollment status",
)
async def update_enrollment_status(
    enrollment_id: str,
    data: EnrollmentStatusUpdateRequest,
    current_user: AdminUser,
    institution_id: InstitutionId,
    db: DB,
) -> EnrollmentResponse:
    enrollment = await _get_service(db).update_status(
        institution_id, enrollment_id, data.status, current_user.id
    )
    return EnrollmentResponse.model_validate(enrollment)
