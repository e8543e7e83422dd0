# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Capability checks consumed by the workflow services.

Roles and permissions are computed by the identity service and arrive on
the access token. The services only ask yes/no questions through
AccessPolicy, so a different policy can be injected where needed.
"""

from typing import Protocol

from src.infrastructure.database.models import ClassCourse

PERMISSION_GRADES_EDIT = "grades.edit"
PERMISSION_EXAMS_UNLOCK = "exams.unlock"
PERMISSION_EXAMS_MANAGE = "exams.manage"


class Actor(Protocol):
    """Identity performing an operation."""

    id: str

    @property
    def is_admin(self) -> bool: ...

    @property
    def is_super_admin(self) -> bool: ...

    def has_permission(self, permission: str) -> bool: ...


class SystemActor:
    """Identity used by background sweeps."""

    id = "system"
    is_admin = True
    is_super_admin = True

    def has_permission(self, permission: str) -> bool:
        return True


SYSTEM_ACTOR = SystemActor()


class AccessPolicy:
    """Default capability rules."""

    def can_edit_grades(self, actor: Actor, class_course: ClassCourse) -> bool:
        if actor.is_admin or actor.has_permission(PERMISSION_GRADES_EDIT):
            return True
        return class_course.teacher_id is not None and class_course.teacher_id == actor.id

    def can_manage_exams(self, actor: Actor, class_course: ClassCourse) -> bool:
        if actor.is_admin or actor.has_permission(PERMISSION_EXAMS_MANAGE):
            return True
        return class_course.teacher_id is not None and class_course.teacher_id == actor.id

    def can_unlock_exams(self, actor: Actor) -> bool:
        return actor.is_super_admin or (
            actor.is_admin and actor.has_permission(PERMISSION_EXAMS_UNLOCK)
        )
