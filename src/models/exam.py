# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam schemas.

Weight bounds are business rules checked by ExamService, so out-of-range
values reach the service and come back as 400 rather than 422.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.infrastructure.database.models import ExamStatus
from src.models.common import ORMModel


class ExamCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: str = Field(min_length=1, max_length=50)
    date: datetime
    weight: float
    class_course_id: str


class ExamUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: str | None = Field(default=None, min_length=1, max_length=50)
    date: datetime | None = None
    weight: float | None = None


class ExamScheduleRequest(BaseModel):
    scheduled_at: datetime | None = None


class ExamLockRequest(BaseModel):
    lock: bool


class ExamResponse(ORMModel):
    id: str
    institution_id: str
    class_course_id: str
    name: str
    type: str
    date: datetime
    weight: float
    status: ExamStatus
    is_locked: bool
    scheduled_by: str | None = None
    scheduled_at: datetime | None = None
    submitted_by: str | None = None
    submitted_at: datetime | None = None
    validated_by: str | None = None
    validated_at: datetime | None = None
    locked_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
