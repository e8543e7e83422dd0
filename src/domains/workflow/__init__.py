# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cross-cutting workflow actions: grade validation, enrollment windows and attendance alerts."""

from src.domains.workflow.service import (
    AcademicYearNotFoundError,
    ClassCourseNotFoundError,
    ClassNotFoundError,
    StudentNotFoundError,
    WorkflowService,
    WorkflowServiceError,
)

__all__ = [
    "WorkflowService",
    "WorkflowServiceError",
    "ClassNotFoundError",
    "AcademicYearNotFoundError",
    "StudentNotFoundError",
    "ClassCourseNotFoundError",
]
