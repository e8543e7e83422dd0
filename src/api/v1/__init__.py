# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    exams: Exam lifecycle endpoints (create, schedule, submit, lock).
    grades: Grade register endpoints.
    workflows: Grade validation, enrollment windows, attendance alerts.
    student_course_enrollments: Course enrollment endpoints.
    credit_ledger: Student credit ledger endpoints.
    notifications: Notification outbox endpoints.
"""

from fastapi import APIRouter

from src.api.v1 import (
    credit_ledger,
    exams,
    grades,
    notifications,
    student_course_enrollments,
    workflows,
)
from src.models.common import ErrorResponse

# Bodies written by the application's DomainError handler
ERROR_RESPONSES = {code: {"model": ErrorResponse} for code in (400, 403, 404, 409)}

# Create the main v1 router
router = APIRouter(prefix="/api/v1", responses=ERROR_RESPONSES)

# Include domain routers
router.include_router(exams.router, prefix="/exams", tags=["Exams"])
router.include_router(grades.router, prefix="/grades", tags=["Grades"])
router.include_router(workflows.router, prefix="/workflows", tags=["Workflows"])
router.include_router(
    student_course_enrollments.router,
    prefix="/student-course-enrollments",
    tags=["Student Course Enrollments"],
)
router.include_router(credit_ledger.router, prefix="/credit-ledger", tags=["Credit Ledger"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])

__all__ = ["router"]
