"""Pytest fixtures for registrar tests.

Storage tests run against the PostgreSQL database configured for the Test
environment (`config/env.d/test/`), inside a transaction that is rolled back
after each test. When that database can't be reached, every test needing a
`db_session` is skipped; the engine tests need no database at all.
"""

from __future__ import annotations

import typing as t
from pathlib import Path

import pydantic as p
import pytest
import sqlalchemy.exc
from sqlalchemy.orm import Session

import registrar
from registrar.core import RegistrarContainer, TimestampProvider
from registrar.model import Block, DeploymentEnvironment, NotationMark, PassingCriteria, Student, \
    StudentTestResult, Subject, Test, User
from registrar.storage import block as block_storage
from registrar.storage import student as student_storage
from registrar.storage import student_test_result as result_storage
from registrar.storage import subject as subject_storage
from registrar.storage import test as test_storage
from registrar.storage import user as user_storage

ROOT = Path(registrar.__file__).resolve().parents[1]


@pytest.fixture(scope="session")
def container() -> t.Generator[RegistrarContainer]:
    """Boot the DI container once per test session, in the Test environment."""
    ct = RegistrarContainer()
    RegistrarContainer.boot(
        ct,
        debug=True,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{ROOT}/config"),
        override=(),
    )

    yield ct

    ct.unwire()
    ct.shutdown_resources()


@pytest.fixture
def db_session(container: RegistrarContainer) -> t.Generator[Session]:
    """Provide a database session wrapped in a transaction.

    Uses join_transaction_mode="create_savepoint" so that session.begin()
    creates savepoints inside the outer transaction, which is rolled back
    after the test.
    """
    engine = container.storage().persistent().engine()
    try:
        connection = engine.connect()
    except sqlalchemy.exc.OperationalError as e:
        pytest.skip(f"test database unavailable: {e.orig}")
    transaction = connection.begin()

    session = Session(
        bind=connection,
        autobegin=False,
        join_transaction_mode="create_savepoint",
    )

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def utcnow(container: RegistrarContainer) -> TimestampProvider:
    return container.utcnow()


@pytest.fixture
def user_factory(db_session: Session) -> t.Callable[..., User]:
    count = 0

    def create_user(email: str | None = None, name: str = "Test Registrar") -> User:
        nonlocal count
        count += 1
        with db_session.begin():
            return user_storage.create(
                email=email or f"registrar{count}@example.com", name=name, session=db_session
            )

    return create_user


@pytest.fixture
def test_user(user_factory: t.Callable[..., User]) -> User:
    return user_factory(email="registrar@example.com")


@pytest.fixture
def student_factory(db_session: Session) -> t.Callable[..., Student]:
    count = 0

    def create_student(first_name: str = "Ada", last_name: str = "Lovelace", email: str | None = None) -> Student:
        nonlocal count
        count += 1
        with db_session.begin():
            return student_storage.create(
                first_name=first_name,
                last_name=last_name,
                email=email or f"student{count}@example.com",
                session=db_session,
            )

    return create_student


@pytest.fixture
def test_student(student_factory: t.Callable[..., Student]) -> Student:
    return student_factory()


@pytest.fixture
def block_factory(db_session: Session, test_user: User) -> t.Callable[..., Block]:
    def create_block(name: str = "Core", passing_criteria: PassingCriteria | None = None, **kw: t.Any) -> Block:
        with db_session.begin():
            return block_storage.create(
                name=name,
                created_by=test_user.user_id,
                passing_criteria=passing_criteria,
                session=db_session,
                **kw,
            )

    return create_block


@pytest.fixture
def subject_factory(db_session: Session, test_user: User) -> t.Callable[..., Subject]:
    def create_subject(
        block: Block,
        name: str = "Mathematics",
        coefficient: float = 1.0,
        passing_criteria: PassingCriteria | None = None,
        **kw: t.Any,
    ) -> Subject:
        with db_session.begin():
            return subject_storage.create(
                block_id=block.block_id,
                name=name,
                coefficient=coefficient,
                created_by=test_user.user_id,
                passing_criteria=passing_criteria,
                session=db_session,
                **kw,
            )

    return create_subject


@pytest.fixture
def test_factory(db_session: Session, test_user: User) -> t.Callable[..., Test]:
    def create_test(
        subject: Subject,
        name: str = "Midterm",
        weight: float = 1.0,
        passing_criteria: PassingCriteria | None = None,
        **kw: t.Any,
    ) -> Test:
        with db_session.begin():
            return test_storage.create(
                subject_id=subject.subject_id,
                name=name,
                weight=weight,
                created_by=test_user.user_id,
                passing_criteria=passing_criteria,
                session=db_session,
                **kw,
            )

    return create_test


@pytest.fixture
def result_factory(
    db_session: Session, test_user: User, utcnow: TimestampProvider
) -> t.Callable[..., StudentTestResult]:
    def create_result(student: Student, test: Test, **marks: float) -> StudentTestResult:
        with db_session.begin():
            return result_storage.create(
                student_id=student.student_id,
                test_id=test.test_id,
                marks=[NotationMark(notation_text=k, mark=v) for k, v in marks.items()],
                created_by=test_user.user_id,
                mark_entry_date=utcnow(),
                session=db_session,
            )

    return create_result
