from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from registrar.core import di
from registrar.lib import NotSet
from registrar.model import User, UserID

from . import Session
from .table import users


def get(
    *,
    user_id: UserID | None = None,
    email: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> User | None:
    """Get a user by ID or email.

    Exactly one of user_id or email must be provided.
    """
    if (user_id is None) == (email is None):
        raise ValueError("Exactly one of user_id or email must be provided")

    if user_id is not None:
        stmt = sqla.select(users.__table__).where(users.user_id == user_id)
    else:
        stmt = sqla.select(users.__table__).where(users.email == email)

    row = session.execute(stmt).mappings().one_or_none()
    return User(**row) if row else None


def find(*, session: Session = di.Provide["storage.persistent.session"]) -> tuple[User, ...]:
    stmt = sqla.select(users.__table__).order_by(users.email)
    return tuple(User(**row) for row in session.execute(stmt).mappings().all())


def create(
    *,
    email: str,
    name: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> User:
    user = users(user_id=UserID(), email=email, name=name)
    session.add(user)
    session.flush()
    return get(user_id=user.user_id, session=session)  # type: ignore[return-value]


def update(
    user_id: UserID,
    *,
    email: str | NotSet = NotSet(),
    name: str | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> User:
    """Update a user.

    Raises:
        KeyError: If user_id does not correspond to a user
    """
    values: dict[str, t.Any] = {}
    if not isinstance(email, NotSet):
        values["email"] = email
    if not isinstance(name, NotSet):
        values["name"] = name

    # a no-op update still verifies the row exists
    stmt = sqla.update(users).where(users.user_id == user_id).values(**(values or {"user_id": user_id}))
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"User {user_id} not found")

    session.flush()
    return get(user_id=user_id, session=session)  # type: ignore[return-value]
