# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification outbox domain package."""

from src.domains.notification.service import InvalidChannelError, NotificationService

__all__ = [
    "NotificationService",
    "InvalidChannelError",
]
