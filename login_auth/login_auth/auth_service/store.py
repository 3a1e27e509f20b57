"""
User store collaborator.

The authentication core only talks to users through ``UserStore``; the
SQLAlchemy implementation below is what the HTTP service wires in.
"""
import logging
from typing import Optional, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import UserExistsError, UserStoreError
from .models import User

logger = logging.getLogger(__name__)


class UserStore(Protocol):
    def find_by_username(self, username: str) -> Optional[User]:
        ...

    def create(self, user: User) -> User:
        ...

    def update_password_hash(self, user: User, password_hash: str) -> None:
        ...


class SqlUserStore:
    """UserStore backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def create(self, user: User) -> User:
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise UserExistsError(user.username) from e
        self.db.refresh(user)
        logger.info("Created user id=%s username=%s", user.id, user.username)
        return user

    def update_password_hash(self, user: User, password_hash: str) -> None:
        user.password_hash = password_hash
        self.db.add(user)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise UserStoreError(f"could not update password hash for user_id={user.id}") from e
