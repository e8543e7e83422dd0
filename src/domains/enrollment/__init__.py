# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain package.

This package provides course enrollment management functionality including:
- Student enrollment in class-courses
- Status transitions with credit ledger deltas
- Bulk enrollment and closing operations
"""

from src.domains.enrollment.service import (
    ClassCourseNotFoundError,
    Contribution,
    EnrollmentNotFoundError,
    EnrollmentService,
    EnrollmentServiceError,
    EnrollmentWindowClosedError,
    InvalidFinalStatusError,
    ProgramMismatchError,
    StudentNotFoundError,
    contribution_for_status,
)

__all__ = [
    "EnrollmentService",
    "EnrollmentServiceError",
    "EnrollmentNotFoundError",
    "StudentNotFoundError",
    "ClassCourseNotFoundError",
    "ProgramMismatchError",
    "InvalidFinalStatusError",
    "EnrollmentWindowClosedError",
    "Contribution",
    "contribution_for_status",
]
