"""CLI commands for managing students."""

from __future__ import annotations

from sqlalchemy.orm import Session

import registrar.lib.cli as click
from registrar.core import di
from registrar.model import StudentStatus
from registrar.storage import student as student_storage


@click.group("student")
def student():
    """Manage students."""


@student.command("create")
@click.argument("first_name")
@click.argument("last_name")
@click.argument("email")
@di.inject
def student_create(
    first_name: str,
    last_name: str,
    email: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Register a new student."""
    with session.begin():
        new_student = student_storage.create(
            first_name=first_name, last_name=last_name, email=email, session=session
        )

    click.echo(f"Created student: {new_student.full_name}")
    click.echo(f"  ID: {new_student.student_id}")
    click.echo(f"  Email: {new_student.email}")


@student.command("list")
@click.option("--status", type=click.EnumType(StudentStatus), default=None)
@di.inject
def student_list(
    status: StudentStatus | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    with session.begin():
        found = student_storage.find(status=status, session=session)

    for s in found:
        click.echo(f"{s.student_id}  {s.full_name:<32} {s.email:<32} {s.status.value}")
