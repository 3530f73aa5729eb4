from __future__ import annotations

import typing as t

import sqlalchemy as sqla

import registrar.lib.util as util
from registrar.core import di
from registrar.lib import NotSet
from registrar.model import BlockID, GradingStatus, PassingCriteria, Subject, SubjectID, SubjectWithTests, UserID

from . import Session
from . import test as test_storage
from .table import subjects


@t.overload
def get(
    subject_id: SubjectID,
    *,
    with_tests: t.Literal[False] = ...,
    session: Session = ...,
) -> Subject | None: ...


@t.overload
def get(
    subject_id: SubjectID,
    *,
    with_tests: t.Literal[True],
    session: Session = ...,
) -> SubjectWithTests | None: ...


def get(
    subject_id: SubjectID,
    *,
    with_tests: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> Subject | SubjectWithTests | None:
    """Get a subject, optionally with all of its tests (whatever their status)."""
    stmt = sqla.select(subjects.__table__).where(subjects.subject_id == subject_id)
    row = session.execute(stmt).mappings().one_or_none()
    if row is None:
        return None

    subject = Subject(**row)
    if with_tests:
        tests = test_storage.find(subject_id=subject_id, session=session)
        return SubjectWithTests(**subject.model_dump(), tests=list(tests))
    return subject


def find(
    *,
    block_id: BlockID | t.Sequence[BlockID] | None = None,
    status: GradingStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Subject, ...]:
    """Find subjects, ordered by block then by position within the block."""
    stmt = sqla.select(subjects.__table__).order_by(subjects.block_id, subjects.position, subjects.name)
    if isinstance(block_id, str):
        stmt = stmt.where(subjects.block_id == block_id)
    elif block_id is not None:
        stmt = stmt.where(subjects.block_id.in_(block_id))
    if status is not None:
        stmt = stmt.where(subjects.status == status)
    return tuple(Subject(**row) for row in session.execute(stmt).mappings().all())


def create(
    *,
    block_id: BlockID,
    name: str,
    coefficient: float,
    created_by: UserID,
    description: str = "",
    position: int = 0,
    status: GradingStatus = GradingStatus.Active,
    passing_criteria: PassingCriteria | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Subject:
    subject = subjects(
        subject_id=SubjectID(),
        block_id=block_id,
        created_by=created_by,
        updated_by=created_by,
        name=name,
        coefficient=coefficient,
        description=description,
        position=position,
        status=status,
        passing_criteria=passing_criteria.model_dump(mode="json") if passing_criteria else None,
    )
    session.add(subject)
    session.flush()
    return get(subject.subject_id, session=session)  # type: ignore[return-value]


def update(
    subject_id: SubjectID,
    *,
    updated_by: UserID,
    name: str | NotSet = NotSet(),
    description: str | NotSet = NotSet(),
    coefficient: float | NotSet = NotSet(),
    position: int | NotSet = NotSet(),
    status: GradingStatus | NotSet = NotSet(),
    passing_criteria: PassingCriteria | None | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> Subject:
    """Update a subject.

    Raises:
        KeyError: If subject_id does not correspond to a subject
    """
    values = util.provided(
        name=name, description=description, coefficient=coefficient, position=position, status=status
    )
    if not isinstance(passing_criteria, NotSet):
        values["passing_criteria"] = passing_criteria.model_dump(mode="json") if passing_criteria else None

    stmt = sqla.update(subjects).where(subjects.subject_id == subject_id).values(updated_by=updated_by, **values)
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Subject {subject_id} not found")

    session.flush()
    return get(subject_id, session=session)  # type: ignore[return-value]


def delete(
    subject_id: SubjectID,
    *,
    updated_by: UserID,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Mark a subject DELETED.

    Returns:
        True if deleted, False if not found
    """
    stmt = (
        sqla.update(subjects)
        .where(subjects.subject_id == subject_id)
        .values(status=GradingStatus.Deleted, updated_by=updated_by)
    )
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportAttributeAccessIssue]
