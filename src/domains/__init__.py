# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer.

Each domain module provides a service class that encapsulates one
component of the assessment workflow.

Domains:
    auth: Token validation and capability checks.
    exam: Exam lifecycle state machine and weight invariant.
    grade: Grade register with lock enforcement.
    enrollment: Course enrollments and their credit ledger deltas.
    credit_ledger: Per-student, per-year credit accumulator.
    notification: Notification outbox.
    workflow: Validation, enrollment windows and attendance alerts.
"""
