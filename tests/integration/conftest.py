# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for integration tests.

Each test gets its own SQLite database file with the full schema and a
small academic structure for two institutions.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.infrastructure.database.connection import (
    build_sessionmaker,
    close_database,
    configure_database,
)
from src.infrastructure.database.models import (
    AcademicYear,
    Base,
    Class,
    ClassCourse,
    Course,
    EnrollmentStatus,
    Program,
    Student,
    StudentCourseEnrollment,
)

INSTITUTION_A = "aaaaaaaa-0000-0000-0000-000000000001"
INSTITUTION_B = "bbbbbbbb-0000-0000-0000-000000000002"


@dataclass
class Seed:
    """IDs of the seeded academic structure.

    Institution A has one class with three class-courses:
    ``class_course_id`` (course ``course_id``, 5 credits, the registered
    student is enrolled),
    ``open_class_course_id`` (course ``open_course_id``, 6 credits, nobody
    enrolled) and
    ``foreign_class_course_id`` (a course of another program).
    Institution B has its own class-course and student.
    """

    institution_id: str
    other_institution_id: str
    program_id: str
    academic_year_id: str
    class_id: str
    course_id: str
    open_course_id: str
    class_course_id: str
    open_class_course_id: str
    foreign_class_course_id: str
    student_id: str
    unregistered_student_id: str
    other_class_course_id: str
    other_student_id: str


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    """SQLite database file private to the test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'workflow.db'}"


@pytest_asyncio.fixture(scope="function")
async def db_engine(db_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Create the schema and install the engine as the application's."""
    engine = create_async_engine(db_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    configure_database(engine)
    yield engine
    await close_database()


@pytest.fixture
def sessionmaker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_sessionmaker(db_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(
    sessionmaker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session used by the services under test."""
    async with sessionmaker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def seed(
    sessionmaker: async_sessionmaker[AsyncSession],
    teacher,
) -> Seed:
    """Insert the academic structure of both institutions."""
    async with sessionmaker() as session:
        program = Program(institution_id=INSTITUTION_A, name="Computer Science", code="CS")
        other_program = Program(institution_id=INSTITUTION_A, name="Mathematics", code="MATH")
        year = AcademicYear(
            institution_id=INSTITUTION_A,
            name="2025-2026",
            start_date=date(2025, 9, 1),
            end_date=date(2026, 6, 30),
            is_active=True,
        )
        session.add_all([program, other_program, year])
        await session.flush()

        klass = Class(
            institution_id=INSTITUTION_A,
            name="CS-1A",
            program_id=program.id,
            academic_year_id=year.id,
        )
        algorithms = Course(
            institution_id=INSTITUTION_A,
            name="Algorithms",
            code="CS101",
            program_id=program.id,
            credits=5,
        )
        databases = Course(
            institution_id=INSTITUTION_A,
            name="Databases",
            code="CS102",
            program_id=program.id,
            credits=6,
        )
        calculus = Course(
            institution_id=INSTITUTION_A,
            name="Calculus",
            code="MA101",
            program_id=other_program.id,
            credits=4,
        )
        session.add_all([klass, algorithms, databases, calculus])
        await session.flush()

        class_course = ClassCourse(
            institution_id=INSTITUTION_A,
            class_id=klass.id,
            course_id=algorithms.id,
            teacher_id=teacher.id,
            semester="S1",
        )
        open_class_course = ClassCourse(
            institution_id=INSTITUTION_A,
            class_id=klass.id,
            course_id=databases.id,
            teacher_id=teacher.id,
            semester="S1",
        )
        foreign_class_course = ClassCourse(
            institution_id=INSTITUTION_A,
            class_id=klass.id,
            course_id=calculus.id,
            teacher_id=teacher.id,
            semester="S2",
        )
        student = Student(
            institution_id=INSTITUTION_A,
            registration_number="CS-0001",
            first_name="Ada",
            last_name="Lovelace",
            class_id=klass.id,
        )
        unregistered = Student(
            institution_id=INSTITUTION_A,
            registration_number="CS-0002",
            first_name="Alan",
            last_name="Turing",
            class_id=klass.id,
        )
        session.add_all([class_course, open_class_course, foreign_class_course, student, unregistered])
        await session.flush()

        # Planned enrollments contribute nothing to the ledger
        session.add(
            StudentCourseEnrollment(
                institution_id=INSTITUTION_A,
                student_id=student.id,
                class_course_id=class_course.id,
                course_id=algorithms.id,
                academic_year_id=year.id,
                status=EnrollmentStatus.PLANNED.value,
                attempt=1,
                credits_attempted=algorithms.credits,
                credits_earned=0,
            )
        )

        b_program = Program(institution_id=INSTITUTION_B, name="Law", code="LAW")
        b_year = AcademicYear(
            institution_id=INSTITUTION_B,
            name="2025-2026",
            start_date=date(2025, 9, 1),
            end_date=date(2026, 6, 30),
        )
        session.add_all([b_program, b_year])
        await session.flush()

        b_class = Class(
            institution_id=INSTITUTION_B,
            name="LAW-1",
            program_id=b_program.id,
            academic_year_id=b_year.id,
        )
        b_course = Course(
            institution_id=INSTITUTION_B,
            name="Civil Law",
            code="LAW101",
            program_id=b_program.id,
            credits=5,
        )
        session.add_all([b_class, b_course])
        await session.flush()

        b_class_course = ClassCourse(
            institution_id=INSTITUTION_B,
            class_id=b_class.id,
            course_id=b_course.id,
            teacher_id=teacher.id,
        )
        b_student = Student(
            institution_id=INSTITUTION_B,
            registration_number="LAW-0001",
            first_name="Grace",
            last_name="Hopper",
            class_id=b_class.id,
        )
        session.add_all([b_class_course, b_student])
        await session.commit()

        return Seed(
            institution_id=INSTITUTION_A,
            other_institution_id=INSTITUTION_B,
            program_id=program.id,
            academic_year_id=year.id,
            class_id=klass.id,
            course_id=algorithms.id,
            open_course_id=databases.id,
            class_course_id=class_course.id,
            open_class_course_id=open_class_course.id,
            foreign_class_course_id=foreign_class_course.id,
            student_id=student.id,
            unregistered_student_id=unregistered.id,
            other_class_course_id=b_class_course.id,
            other_student_id=b_student.id,
        )


@pytest.fixture
def exam_date() -> datetime:
    return datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc)
