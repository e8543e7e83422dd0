# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the exam lifecycle state machine."""

import pytest

from src.domains.exam.state import (
    EXAM_TRANSITIONS,
    InvalidExamTransitionError,
    can_transition,
    transition,
)
from src.domains.exceptions import InvalidStateError
from src.infrastructure.database.models import Exam, ExamStatus

pytestmark = pytest.mark.unit


def make_exam(status: ExamStatus) -> Exam:
    return Exam(name="Midterm", type="written", weight=50, status=status.value)


class TestTransitionTable:
    """Tests for the allowed edges."""

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (ExamStatus.DRAFT, ExamStatus.SCHEDULED),
            (ExamStatus.DRAFT, ExamStatus.SUBMITTED),
            (ExamStatus.SCHEDULED, ExamStatus.SUBMITTED),
            (ExamStatus.SUBMITTED, ExamStatus.APPROVED),
            (ExamStatus.APPROVED, ExamStatus.LOCKED),
        ],
    )
    def test_forward_edges(self, current: ExamStatus, target: ExamStatus) -> None:
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (ExamStatus.DRAFT, ExamStatus.APPROVED),
            (ExamStatus.DRAFT, ExamStatus.LOCKED),
            (ExamStatus.SCHEDULED, ExamStatus.DRAFT),
            (ExamStatus.SUBMITTED, ExamStatus.DRAFT),
            (ExamStatus.SUBMITTED, ExamStatus.LOCKED),
            (ExamStatus.APPROVED, ExamStatus.SUBMITTED),
        ],
    )
    def test_missing_edges(self, current: ExamStatus, target: ExamStatus) -> None:
        assert not can_transition(current, target)

    def test_locked_is_terminal(self) -> None:
        assert EXAM_TRANSITIONS[ExamStatus.LOCKED] == frozenset()

    def test_every_status_has_an_entry(self) -> None:
        assert set(EXAM_TRANSITIONS) == set(ExamStatus)


class TestTransition:
    """Tests for transition()."""

    def test_returns_previous_status(self) -> None:
        exam = make_exam(ExamStatus.SUBMITTED)

        previous = transition(exam, ExamStatus.APPROVED)

        assert previous == ExamStatus.SUBMITTED
        assert exam.status == ExamStatus.APPROVED.value

    def test_invalid_edge_leaves_exam_unchanged(self) -> None:
        exam = make_exam(ExamStatus.DRAFT)

        with pytest.raises(InvalidExamTransitionError) as exc_info:
            transition(exam, ExamStatus.APPROVED)

        assert exam.status == ExamStatus.DRAFT.value
        assert exc_info.value.current == ExamStatus.DRAFT
        assert exc_info.value.target == ExamStatus.APPROVED
        assert exc_info.value.code == "invalid_exam_transition"

    def test_error_maps_to_conflict(self) -> None:
        error = InvalidExamTransitionError(ExamStatus.LOCKED, ExamStatus.DRAFT)

        assert isinstance(error, InvalidStateError)
        assert error.status_code == 409
        assert "locked" in error.message
