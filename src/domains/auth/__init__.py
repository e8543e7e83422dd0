# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication and capability checks.

Exports:
    JWTManager: Access token creation and validation.
    AccessPolicy: Yes/no capability checks used by the workflow services.
"""

from src.domains.auth.access import (
    PERMISSION_EXAMS_MANAGE,
    PERMISSION_EXAMS_UNLOCK,
    PERMISSION_GRADES_EDIT,
    SYSTEM_ACTOR,
    AccessPolicy,
    Actor,
)
from src.domains.auth.jwt import (
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)

__all__ = [
    "AccessPolicy",
    "Actor",
    "SYSTEM_ACTOR",
    "PERMISSION_EXAMS_MANAGE",
    "PERMISSION_EXAMS_UNLOCK",
    "PERMISSION_GRADES_EDIT",
    "JWTManager",
    "TokenPayload",
    "TokenExpiredError",
    "InvalidTokenError",
]
