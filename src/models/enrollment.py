# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course enrollment schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.infrastructure.database.models import EnrollmentStatus
from src.models.common import ORMModel


class EnrollRequest(BaseModel):
    student_id: str
    class_course_id: str
    status: EnrollmentStatus = EnrollmentStatus.PLANNED
    attempt: int = Field(default=1, ge=1)


class BulkEnrollRequest(BaseModel):
    student_id: str
    class_course_ids: list[str] = Field(min_length=1)
    status: EnrollmentStatus = EnrollmentStatus.PLANNED


class EnrollmentStatusUpdateRequest(BaseModel):
    status: EnrollmentStatus


class CloseForStudentRequest(BaseModel):
    student_id: str
    status: EnrollmentStatus = EnrollmentStatus.WITHDRAWN


class EnrollmentResponse(ORMModel):
    id: str
    institution_id: str
    student_id: str
    class_course_id: str
    course_id: str
    academic_year_id: str
    status: EnrollmentStatus
    attempt: int
    credits_attempted: int
    credits_earned: int
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class BulkEnrollResponse(BaseModel):
    created: list[EnrollmentResponse]
    skipped: list[str]


class CloseForStudentResponse(BaseModel):
    closed: int
