# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Workflow API endpoints.

- POST /validate-grades - Approve a submitted exam (admin)
- POST /enrollment-window - Open or close a class enrollment window (admin)
- GET /enrollment-windows - List enrollment windows
- POST /attendance-alert - Queue an attendance alert
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import DB, AdminUser, AuthenticatedUser, InstitutionId
from src.domains.workflow.service import WorkflowService
from src.models.exam import ExamResponse
from src.models.workflow import (
    AttendanceAlertRequest,
    EnrollmentWindowRequest,
    EnrollmentWindowResponse,
    ValidateGradesRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession) -> WorkflowService:
    return WorkflowService(db=db)


@router.post(
    "/validate-grades",
    response_model=ExamResponse,
    summary="Validate grades",
    description="Approve a submitted exam's grades. Requires admin access.",
)
async def validate_grades(
    data: ValidateGradesRequest,
    current_user: AdminUser,
    institution_id: InstitutionId,
    db: DB,
) -> ExamResponse:
    exam = await _get_service(db).validate_grades(institution_id, data, current_user)
    return ExamResponse.model_validate(exam)


@router.post(
    "/enrollment-window",
    response_model=EnrollmentWindowResponse,
    summary="Open or close enrollment window",
)
async def set_enrollment_window(
    data: EnrollmentWindowRequest,
    current_user: AdminUser,
    institution_id: InstitutionId,
    db: DB,
) -> EnrollmentWindowResponse:
    window = await _get_service(db).set_enrollment_window(institution_id, data, current_user)
    return EnrollmentWindowResponse.model_validate(window)


@router.get(
    "/enrollment-windows",
    response_model=list[EnrollmentWindowResponse],
    summary="List enrollment windows",
)
async def list_enrollment_windows(
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
    academic_year_id: Annotated[
        str | None, Query(description="Filter by academic year")
    ] = None,
) -> list[EnrollmentWindowResponse]:
    windows = await _get_service(db).list_enrollment_windows(
        institution_id, academic_year_id=academic_year_id
    )
    return [EnrollmentWindowResponse.model_validate(window) for window in windows]


@router.post(
    "/attendance-alert",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue attendance alert",
)
async def attendance_alert(
    data: AttendanceAlertRequest,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
) -> dict[str, str]:
    await _get_service(db).attendance_alert(institution_id, data, current_user)
    return {"status": "queued"}
