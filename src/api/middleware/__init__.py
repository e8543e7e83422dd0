# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

This package provides middleware for request processing:
- RequestLoggingMiddleware: Request ID binding and access log.
- AuthMiddleware: JWT authentication.
- TenantMiddleware: Resolves the institution from the token.
"""

from src.api.middleware.auth import AuthMiddleware, CurrentUser, get_current_user
from src.api.middleware.request_logging import RequestLoggingMiddleware
from src.api.middleware.tenant import TenantContext, TenantMiddleware, get_tenant_from_request

__all__ = [
    "AuthMiddleware",
    "CurrentUser",
    "RequestLoggingMiddleware",
    "TenantContext",
    "TenantMiddleware",
    "get_current_user",
    "get_tenant_from_request",
]
