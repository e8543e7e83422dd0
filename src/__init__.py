"""Academic workflow service.

Assessment lifecycle, grade register, credit ledger and notification
outbox for the academic records platform.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "0.1.0"
