# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain error taxonomy shared by the workflow services.

Every service error derives from one of four kinds. The API layer maps
each kind to one HTTP status; none of them is retried.

- ValidationError: malformed or out-of-range input (400)
- ForbiddenError: locked record or missing capability (403)
- NotFoundError: record absent or owned by another institution (404)
- InvalidStateError: transition not allowed from the current state (409)
"""


class DomainError(Exception):
    """Base exception for business-rule violations.

    Attributes:
        message: Human-readable error description.
        code: Stable machine-readable error code.
    """

    status_code: int = 400
    code: str = "domain_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(DomainError):
    """Input is malformed or out of range."""

    status_code = 400
    code = "validation_error"


class ForbiddenError(DomainError):
    """Record is locked or caller lacks the capability."""

    status_code = 403
    code = "forbidden"


class NotFoundError(DomainError):
    """Record does not exist for the caller's institution."""

    status_code = 404
    code = "not_found"


class InvalidStateError(DomainError):
    """Transition attempted from a state that does not permit it."""

    status_code = 409
    code = "invalid_state"
