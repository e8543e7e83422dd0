# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade register domain package."""

from src.domains.grade.service import (
    GradeAccessDeniedError,
    GradeNotFoundError,
    GradeService,
    GradeServiceError,
    InvalidScoreError,
    StudentNotFoundError,
    StudentNotRegisteredError,
)

__all__ = [
    "GradeService",
    "GradeServiceError",
    "GradeNotFoundError",
    "StudentNotFoundError",
    "InvalidScoreError",
    "GradeAccessDeniedError",
    "StudentNotRegisteredError",
]
