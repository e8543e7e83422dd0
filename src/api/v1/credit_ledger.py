# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credit ledger API endpoints.

- GET /students/{student_id} - Ledger entries of a student, one per year
- GET /students/{student_id}/summary - Credit totals and remaining credits
"""

from typing import Annotated

from fastapi import APIRouter, Query

from src.api.dependencies import DB, AuthenticatedUser, InstitutionId
from src.domains.credit_ledger.service import CreditLedgerService
from src.models.credit_ledger import CreditLedgerResponse, CreditSummaryResponse

router = APIRouter()


@router.get(
    "/students/{student_id}",
    response_model=list[CreditLedgerResponse],
    summary="List student ledger entries",
)
async def list_student_ledger(
    student_id: str,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
) -> list[CreditLedgerResponse]:
    entries = await CreditLedgerService(db).list_by_student(institution_id, student_id)
    return [CreditLedgerResponse.model_validate(entry) for entry in entries]


@router.get(
    "/students/{student_id}/summary",
    response_model=CreditSummaryResponse,
    summary="Summarize student credits",
)
async def summarize_student(
    student_id: str,
    current_user: AuthenticatedUser,
    institution_id: InstitutionId,
    db: DB,
    academic_year_id: Annotated[
        str | None, Query(description="Limit to one academic year")
    ] = None,
) -> CreditSummaryResponse:
    summary = await CreditLedgerService(db).summarize_student(
        institution_id, student_id, academic_year_id=academic_year_id
    )
    return CreditSummaryResponse(
        student_id=summary.student_id,
        academic_year_id=summary.academic_year_id,
        credits_in_progress=summary.credits_in_progress,
        credits_earned=summary.credits_earned,
        required_credits=summary.required_credits,
        remaining=summary.remaining,
    )
