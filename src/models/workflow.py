# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Workflow action schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from src.infrastructure.database.models import WindowStatus
from src.models.common import ORMModel


class ValidateGradesRequest(BaseModel):
    exam_id: str
    approver_id: str | None = None


class EnrollmentWindowRequest(BaseModel):
    class_id: str
    academic_year_id: str
    action: Literal["open", "close"]


class EnrollmentWindowResponse(ORMModel):
    id: str
    class_id: str
    academic_year_id: str
    status: WindowStatus
    opened_at: datetime | None = None
    closed_at: datetime | None = None
    updated_at: datetime


class AttendanceAlertRequest(BaseModel):
    student_id: str
    class_course_id: str | None = None
    severity: Literal["info", "warning", "critical"] = "info"
    message: str = Field(min_length=3, max_length=1000)
