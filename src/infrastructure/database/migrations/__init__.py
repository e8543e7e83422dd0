# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Revisions live in ``versions`` and are run by alembic
(``alembic upgrade head`` with alembic.ini at the repository root).
"""
