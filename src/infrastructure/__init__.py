# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer.

This package contains:
- Database connections, ORM models and migrations (PostgreSQL)
- Background scheduling (APScheduler)
- Notification delivery channels and the outbox dispatcher
"""
