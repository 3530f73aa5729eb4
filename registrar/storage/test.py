from __future__ import annotations

import typing as t

import sqlalchemy as sqla

import registrar.lib.util as util
from registrar.core import di
from registrar.lib import NotSet
from registrar.model import GradingStatus, Notation, PassingCriteria, SubjectID, Test, TestID, UserID

from . import Session
from .table import tests


def get(
    test_id: TestID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Test | None:
    stmt = sqla.select(tests.__table__).where(tests.test_id == test_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Test(**row) if row else None


def find(
    *,
    subject_id: SubjectID | t.Sequence[SubjectID] | None = None,
    status: GradingStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Test, ...]:
    """Find tests, ordered by subject then by position within the subject."""
    stmt = sqla.select(tests.__table__).order_by(tests.subject_id, tests.position, tests.name)
    if isinstance(subject_id, str):
        stmt = stmt.where(tests.subject_id == subject_id)
    elif subject_id is not None:
        stmt = stmt.where(tests.subject_id.in_(subject_id))
    if status is not None:
        stmt = stmt.where(tests.status == status)
    return tuple(Test(**row) for row in session.execute(stmt).mappings().all())


def create(
    *,
    subject_id: SubjectID,
    name: str,
    weight: float,
    created_by: UserID,
    description: str = "",
    notations: t.Sequence[Notation] = (),
    position: int = 0,
    status: GradingStatus = GradingStatus.Active,
    passing_criteria: PassingCriteria | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Test:
    test = tests(
        test_id=TestID(),
        subject_id=subject_id,
        created_by=created_by,
        updated_by=created_by,
        name=name,
        weight=weight,
        description=description,
        notations=[n.model_dump(mode="json") for n in notations],
        position=position,
        status=status,
        passing_criteria=passing_criteria.model_dump(mode="json") if passing_criteria else None,
    )
    session.add(test)
    session.flush()
    return get(test.test_id, session=session)  # type: ignore[return-value]


def update(
    test_id: TestID,
    *,
    updated_by: UserID,
    name: str | NotSet = NotSet(),
    description: str | NotSet = NotSet(),
    weight: float | NotSet = NotSet(),
    notations: t.Sequence[Notation] | NotSet = NotSet(),
    position: int | NotSet = NotSet(),
    status: GradingStatus | NotSet = NotSet(),
    passing_criteria: PassingCriteria | None | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> Test:
    """Update a test.

    Raises:
        KeyError: If test_id does not correspond to a test
    """
    values = util.provided(name=name, description=description, weight=weight, position=position, status=status)
    if not isinstance(notations, NotSet):
        values["notations"] = [n.model_dump(mode="json") for n in notations]
    if not isinstance(passing_criteria, NotSet):
        values["passing_criteria"] = passing_criteria.model_dump(mode="json") if passing_criteria else None

    stmt = sqla.update(tests).where(tests.test_id == test_id).values(updated_by=updated_by, **values)
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Test {test_id} not found")

    session.flush()
    return get(test_id, session=session)  # type: ignore[return-value]


def delete(
    test_id: TestID,
    *,
    updated_by: UserID,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Mark a test DELETED; it then drops out of every calculation.

    Returns:
        True if deleted, False if not found
    """
    stmt = (
        sqla.update(tests)
        .where(tests.test_id == test_id)
        .values(status=GradingStatus.Deleted, updated_by=updated_by)
    )
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportAttributeAccessIssue]
