# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credit ledger domain package."""

from src.domains.credit_ledger.service import (
    DEFAULT_REQUIRED_CREDITS,
    CreditLedgerService,
    CreditSummary,
)

__all__ = [
    "CreditLedgerService",
    "CreditSummary",
    "DEFAULT_REQUIRED_CREDITS",
]
