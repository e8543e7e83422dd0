# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Per-student, per-academic-year credit ledger.

The ledger is an accumulator: rows are created on first use and then only
ever moved by signed deltas, applied as ``column = column + delta`` so
concurrent writers never lose an update. apply_delta() does not commit;
it joins the caller's transaction so the ledger and the enrollment write
that caused it persist together.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import StudentCreditLedger
from src.infrastructure.database.models.base import new_id
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

DEFAULT_REQUIRED_CREDITS = 60


@dataclass(frozen=True)
class CreditSummary:
    student_id: str
    academic_year_id: str | None
    credits_in_progress: int
    credits_earned: int
    required_credits: int

    @property
    def remaining(self) -> int:
        return max(self.required_credits - self.credits_earned, 0)


class CreditLedgerService:
    """Ledger store.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def apply_delta(
        self,
        institution_id: str,
        student_id: str,
        academic_year_id: str,
        in_progress_delta: int,
        earned_delta: int,
    ) -> StudentCreditLedger:
        """Add signed deltas to the (student, year) entry, creating it if absent."""
        await self._ensure_entry(institution_id, student_id, academic_year_id)

        if in_progress_delta or earned_delta:
            await self.db.execute(
                update(StudentCreditLedger)
                .where(
                    StudentCreditLedger.institution_id == institution_id,
                    StudentCreditLedger.student_id == student_id,
                    StudentCreditLedger.academic_year_id == academic_year_id,
                )
                .values(
                    credits_in_progress=StudentCreditLedger.credits_in_progress
                    + in_progress_delta,
                    credits_earned=StudentCreditLedger.credits_earned + earned_delta,
                    updated_at=utc_now(),
                )
                .execution_options(synchronize_session=False)
            )

        entry = await self.get_entry(institution_id, student_id, academic_year_id)
        logger.debug(
            "Ledger delta applied: student=%s, year=%s, in_progress=%+d, earned=%+d",
            student_id,
            academic_year_id,
            in_progress_delta,
            earned_delta,
        )
        return entry  # type: ignore[return-value]

    async def get_entry(
        self, institution_id: str, student_id: str, academic_year_id: str
    ) -> StudentCreditLedger | None:
        result = await self.db.execute(
            select(StudentCreditLedger)
            .where(
                StudentCreditLedger.institution_id == institution_id,
                StudentCreditLedger.student_id == student_id,
                StudentCreditLedger.academic_year_id == academic_year_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_by_student(
        self, institution_id: str, student_id: str
    ) -> list[StudentCreditLedger]:
        result = await self.db.execute(
            select(StudentCreditLedger)
            .where(
                StudentCreditLedger.institution_id == institution_id,
                StudentCreditLedger.student_id == student_id,
            )
            .order_by(StudentCreditLedger.created_at.asc())
        )
        return list(result.scalars().all())

    async def summarize_student(
        self,
        institution_id: str,
        student_id: str,
        academic_year_id: str | None = None,
    ) -> CreditSummary:
        """Totals for one year, or across all years when no year is given."""
        query = select(
            func.coalesce(func.sum(StudentCreditLedger.credits_in_progress), 0),
            func.coalesce(func.sum(StudentCreditLedger.credits_earned), 0),
            func.max(StudentCreditLedger.required_credits),
        ).where(
            StudentCreditLedger.institution_id == institution_id,
            StudentCreditLedger.student_id == student_id,
        )
        if academic_year_id:
            query = query.where(StudentCreditLedger.academic_year_id == academic_year_id)

        in_progress, earned, required = (await self.db.execute(query)).one()

        return CreditSummary(
            student_id=student_id,
            academic_year_id=academic_year_id,
            credits_in_progress=int(in_progress),
            credits_earned=int(earned),
            required_credits=int(required) if required is not None else DEFAULT_REQUIRED_CREDITS,
        )

    async def _ensure_entry(
        self, institution_id: str, student_id: str, academic_year_id: str
    ) -> None:
        dialect = self.db.get_bind().dialect.name
        insert = pg_insert if dialect == "postgresql" else sqlite_insert
        now = utc_now()

        stmt = (
            insert(StudentCreditLedger)
            .values(
                id=new_id(),
                institution_id=institution_id,
                student_id=student_id,
                academic_year_id=academic_year_id,
                credits_in_progress=0,
                credits_earned=0,
                required_credits=DEFAULT_REQUIRED_CREDITS,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=["student_id", "academic_year_id"])
        )
        await self.db.execute(stmt)
