# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests (SQLite through aiosqlite)
"""

import os
from collections.abc import Generator
from dataclasses import dataclass, field

import pytest

# =============================================================================
# Environment
# =============================================================================

# Set before any src module reads the settings
TEST_ENVIRONMENT = {
    "ENVIRONMENT": "development",
    "DEBUG": "true",
    "LOG_LEVEL": "DEBUG",
    "DB_URL": "sqlite+aiosqlite:///:memory:",
    "JWT_SECRET_KEY": "test-secret-key-for-testing-only",
    "JWT_ALGORITHM": "HS256",
    "ACCESS_TOKEN_EXPIRE_MINUTES": "30",
    "WORKFLOW_SCHEDULER_ENABLED": "false",
    "WORKFLOW_EXAM_LOCK_GRACE_HOURS": "72",
}
os.environ.update(TEST_ENVIRONMENT)

from src.core.config import clear_settings_cache  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    """Reload settings around every test so env patches do not leak."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (uses a SQLite database)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Actors
# =============================================================================


@dataclass
class StubActor:
    """Minimal identity satisfying the services' Actor protocol."""

    id: str
    is_admin: bool = False
    is_super_admin: bool = False
    permissions: list[str] = field(default_factory=list)

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions


TEACHER_ID = "11111111-1111-1111-1111-111111111111"


@pytest.fixture
def teacher() -> StubActor:
    """Teacher assigned to the seeded class-courses."""
    return StubActor(id=TEACHER_ID)


@pytest.fixture
def other_teacher() -> StubActor:
    """Teacher with no assignment and no permissions."""
    return StubActor(id="22222222-2222-2222-2222-222222222222")


@pytest.fixture
def admin() -> StubActor:
    """Institution administrator without the unlock permission."""
    return StubActor(id="33333333-3333-3333-3333-333333333333", is_admin=True)


@pytest.fixture
def super_admin() -> StubActor:
    """Platform super administrator."""
    return StubActor(
        id="44444444-4444-4444-4444-444444444444",
        is_admin=True,
        is_super_admin=True,
    )


@pytest.fixture
def make_actor() -> type[StubActor]:
    """Build actors with custom flags or permissions."""
    return StubActor
