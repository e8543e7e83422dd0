# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credit ledger schemas."""

from datetime import datetime

from pydantic import BaseModel

from src.models.common import ORMModel


class CreditLedgerResponse(ORMModel):
    id: str
    student_id: str
    academic_year_id: str
    credits_in_progress: int
    credits_earned: int
    required_credits: int
    updated_at: datetime


class CreditSummaryResponse(BaseModel):
    student_id: str
    academic_year_id: str | None = None
    credits_in_progress: int
    credits_earned: int
    required_credits: int
    remaining: int
