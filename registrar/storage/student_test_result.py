from __future__ import annotations

import datetime
import statistics
import typing as t

import sqlalchemy as sqla

import registrar.lib.util as util
from registrar.core import di
from registrar.lib import NotSet
from registrar.model import NotationMark, StudentID, StudentTestResult, StudentTestResultID, \
    StudentTestResultStatus, TestID, UserID

from . import Session
from .table import student_test_results


def average_of(marks: t.Sequence[NotationMark]) -> float:
    """Arithmetic mean of the notation marks; 0 when there are none"""
    return statistics.fmean(m.mark for m in marks) if marks else 0.0


def get(
    student_test_result_id: StudentTestResultID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> StudentTestResult | None:
    stmt = sqla.select(student_test_results.__table__).where(
        student_test_results.student_test_result_id == student_test_result_id
    )
    row = session.execute(stmt).mappings().one_or_none()
    return StudentTestResult(**row) if row else None


def find(
    *,
    student_id: StudentID | None = None,
    test_id: TestID | None = None,
    status: StudentTestResultStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[StudentTestResult, ...]:
    """Find results; when several exist for one test, the most recently entered comes last."""
    stmt = sqla.select(student_test_results.__table__).order_by(
        student_test_results.mark_entry_date, student_test_results.create_time
    )
    if student_id is not None:
        stmt = stmt.where(student_test_results.student_id == student_id)
    if test_id is not None:
        stmt = stmt.where(student_test_results.test_id == test_id)
    if status is not None:
        stmt = stmt.where(student_test_results.status == status)
    return tuple(StudentTestResult(**row) for row in session.execute(stmt).mappings().all())


def create(
    *,
    student_id: StudentID,
    test_id: TestID,
    marks: t.Sequence[NotationMark],
    created_by: UserID,
    mark_entry_date: datetime.datetime,
    status: StudentTestResultStatus = StudentTestResultStatus.Pending,
    session: Session = di.Provide["storage.persistent.session"],
) -> StudentTestResult:
    """Record a student's marks on a test; `average_mark` is derived from the marks."""
    result = student_test_results(
        student_test_result_id=StudentTestResultID(),
        student_id=student_id,
        test_id=test_id,
        created_by=created_by,
        updated_by=created_by,
        average_mark=average_of(marks),
        mark_entry_date=mark_entry_date,
        marks=[m.model_dump(mode="json") for m in marks],
        status=status,
    )
    session.add(result)
    session.flush()
    return get(result.student_test_result_id, session=session)  # type: ignore[return-value]


def update(
    student_test_result_id: StudentTestResultID,
    *,
    updated_by: UserID,
    marks: t.Sequence[NotationMark] | NotSet = NotSet(),
    mark_entry_date: datetime.datetime | NotSet = NotSet(),
    status: StudentTestResultStatus | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> StudentTestResult:
    """Update a result; replacing the marks recomputes the average.

    Raises:
        KeyError: If student_test_result_id does not correspond to a result
    """
    values = util.provided(mark_entry_date=mark_entry_date, status=status)
    if not isinstance(marks, NotSet):
        values["marks"] = [m.model_dump(mode="json") for m in marks]
        values["average_mark"] = average_of(marks)

    stmt = (
        sqla.update(student_test_results)
        .where(student_test_results.student_test_result_id == student_test_result_id)
        .values(updated_by=updated_by, **values)
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"StudentTestResult {student_test_result_id} not found")

    session.flush()
    return get(student_test_result_id, session=session)  # type: ignore[return-value]
