from __future__ import annotations

import sqlalchemy as sqla

import registrar.lib.util as util
from registrar.core import di
from registrar.lib import NotSet
from registrar.model import Student, StudentID, StudentStatus

from . import Session
from .table import students


def get(
    student_id: StudentID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Student | None:
    stmt = sqla.select(students.__table__).where(students.student_id == student_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Student(**row) if row else None


def find(
    *,
    status: StudentStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Student, ...]:
    """Find students, optionally restricted to one status, ordered by name."""
    stmt = sqla.select(students.__table__).order_by(students.last_name, students.first_name)
    if status is not None:
        stmt = stmt.where(students.status == status)
    return tuple(Student(**row) for row in session.execute(stmt).mappings().all())


def create(
    *,
    first_name: str,
    last_name: str,
    email: str,
    status: StudentStatus = StudentStatus.Active,
    session: Session = di.Provide["storage.persistent.session"],
) -> Student:
    student = students(
        student_id=StudentID(),
        first_name=first_name,
        last_name=last_name,
        email=email,
        status=status,
    )
    session.add(student)
    session.flush()
    return get(student.student_id, session=session)  # type: ignore[return-value]


def update(
    student_id: StudentID,
    *,
    first_name: str | NotSet = NotSet(),
    last_name: str | NotSet = NotSet(),
    email: str | NotSet = NotSet(),
    status: StudentStatus | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> Student:
    """Update a student.

    Raises:
        KeyError: If student_id does not correspond to a student
    """
    values = util.provided(first_name=first_name, last_name=last_name, email=email, status=status)

    stmt = sqla.update(students).where(students.student_id == student_id).values(
        **(values or {"student_id": student_id})
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Student {student_id} not found")

    session.flush()
    return get(student_id, session=session)  # type: ignore[return-value]
