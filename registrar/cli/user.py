"""CLI commands for managing users."""

from __future__ import annotations

from sqlalchemy.orm import Session

import registrar.lib.cli as click
from registrar.core import di
from registrar.storage import user as user_storage


@click.group("user")
def user():
    """Manage users."""


@user.command("create")
@click.argument("email")
@click.argument("name")
@di.inject
def user_create(
    email: str,
    name: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Create a new user.

    EMAIL is the user's email address.
    NAME is the user's display name.
    """
    with session.begin():
        if user_storage.get(email=email, session=session):
            click.echo(f"Error: User with email '{email}' already exists.", err=True)
            raise SystemExit(1)
        new_user = user_storage.create(email=email, name=name, session=session)

    click.echo(f"Created user: {new_user.name}")
    click.echo(f"  ID: {new_user.user_id}")
    click.echo(f"  Email: {new_user.email}")
