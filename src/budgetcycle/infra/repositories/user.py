"""User bootstrap helpers."""

from __future__ import annotations

from typing import Callable

from sqlmodel import Session, select

from ...models.user import User


def ensure_user(session_factory: Callable[[], Session], username: str) -> User:
    """Create or return the user with *username*."""

    with session_factory() as session:
        user = session.exec(select(User).where(User.username == username)).first()
        if user is None:
            user = User(username=username)
            session.add(user)
            session.commit()
            session.refresh(user)
        session.expunge(user)
        return user
