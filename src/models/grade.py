# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade schemas."""

from datetime import datetime

from pydantic import BaseModel

from src.models.common import ORMModel


class GradeUpsertRequest(BaseModel):
    student_id: str
    exam_id: str
    score: float


class GradeUpdateRequest(BaseModel):
    score: float


class GradeResponse(ORMModel):
    id: str
    institution_id: str
    student_id: str
    exam_id: str
    score: float
    created_at: datetime
    updated_at: datetime


class GradePageResponse(ORMModel):
    items: list[GradeResponse]
    next_cursor: str | None = None


class GradeAverageResponse(BaseModel):
    average: float | None = None


class CourseAverageResponse(ORMModel):
    course_id: str
    course_name: str
    course_code: str
    credits: int
    average: float


class StudentTranscriptResponse(ORMModel):
    student_id: str
    courses: list[CourseAverageResponse]
    total_credits: int
    overall_average: float
