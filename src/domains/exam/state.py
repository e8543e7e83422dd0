# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exam lifecycle state machine.

    draft -> scheduled -> submitted -> approved -> locked
    draft -> submitted

Only the forward edges below exist. There is no rejection edge: a
submitted exam that fails validation stays submitted.
"""

from src.domains.exceptions import InvalidStateError
from src.infrastructure.database.models import Exam, ExamStatus

EXAM_TRANSITIONS: dict[ExamStatus, frozenset[ExamStatus]] = {
    ExamStatus.DRAFT: frozenset({ExamStatus.SCHEDULED, ExamStatus.SUBMITTED}),
    ExamStatus.SCHEDULED: frozenset({ExamStatus.SUBMITTED}),
    ExamStatus.SUBMITTED: frozenset({ExamStatus.APPROVED}),
    ExamStatus.APPROVED: frozenset({ExamStatus.LOCKED}),
    ExamStatus.LOCKED: frozenset(),
}


class InvalidExamTransitionError(InvalidStateError):
    """Raised when an exam cannot move to the requested state."""

    def __init__(self, current: ExamStatus, target: ExamStatus) -> None:
        super().__init__(
            f"Exam cannot move from {current.value} to {target.value}",
            code="invalid_exam_transition",
        )
        self.current = current
        self.target = target


def can_transition(current: ExamStatus, target: ExamStatus) -> bool:
    return target in EXAM_TRANSITIONS[current]


def transition(exam: Exam, target: ExamStatus) -> ExamStatus:
    """Move ``exam`` to ``target``.

    Returns:
        The previous status.

    Raises:
        InvalidExamTransitionError: If the edge does not exist.
    """
    current = exam.exam_status
    if not can_transition(current, target):
        raise InvalidExamTransitionError(current, target)
    exam.status = target.value
    return current
