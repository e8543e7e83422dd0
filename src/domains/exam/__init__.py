# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam lifecycle domain package.

- Exam authoring under the class-course weight ceiling
- draft/scheduled/submitted/approved/locked transitions
- Expiry sweep for approved exams
"""

from src.domains.exam.service import (
    ClassCourseNotFoundError,
    ExamAccessDeniedError,
    ExamLockedError,
    ExamNotApprovedError,
    ExamNotFoundError,
    ExamService,
    ExamServiceError,
    InvalidWeightError,
    WeightLimitExceededError,
)
from src.domains.exam.state import (
    EXAM_TRANSITIONS,
    InvalidExamTransitionError,
    can_transition,
    transition,
)

__all__ = [
    "ExamService",
    "ExamServiceError",
    "ExamNotFoundError",
    "ClassCourseNotFoundError",
    "InvalidWeightError",
    "WeightLimitExceededError",
    "ExamLockedError",
    "ExamAccessDeniedError",
    "ExamNotApprovedError",
    "InvalidExamTransitionError",
    "EXAM_TRANSITIONS",
    "can_transition",
    "transition",
]
