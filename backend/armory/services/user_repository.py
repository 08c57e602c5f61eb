"""Narrow user storage interface used by authentication and account lifecycle"""
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from armory.core.database import in_transaction, restore, soft_delete
from armory.models.user import User


class UserRepository(Protocol):
    def get_by_id(self, user_id: int) -> Optional[User]:
        ...

    def get_by_email(self, email: str, include_deleted: bool = False) -> Optional[User]:
        ...

    def get_by_confirm_token(self, token: str) -> Optional[User]:
        ...

    def get_by_recover_token(self, token: str) -> Optional[User]:
        ...

    def add(self, user: User) -> User:
        ...

    def save(self, user: User) -> User:
        ...

    def soft_delete(self, user: User) -> User:
        ...

    def restore(self, user: User) -> User:
        ...


class SqlUserRepository:
    """SQLAlchemy implementation; every write commits"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str, include_deleted: bool = False) -> Optional[User]:
        query = self.db.query(User).filter(User.email == email)
        if include_deleted:
            query = query.execution_options(include_deleted=True)
        return query.first()

    def get_by_confirm_token(self, token: str) -> Optional[User]:
        return self.db.query(User).filter(User.confirm_token == token).first()

    def get_by_recover_token(self, token: str) -> Optional[User]:
        return self.db.query(User).filter(User.recover_token == token).first()

    def add(self, user: User) -> User:
        def _add(db: Session) -> User:
            db.add(user)
            db.flush()
            return user

        user = in_transaction(self.db, _add)
        self.db.refresh(user)
        return user

    def save(self, user: User) -> User:
        def _save(db: Session) -> User:
            db.add(user)
            return user

        return in_transaction(self.db, _save)

    def soft_delete(self, user: User) -> User:
        def _delete(db: Session) -> User:
            soft_delete(db, user)
            return user

        return in_transaction(self.db, _delete)

    def restore(self, user: User) -> User:
        def _restore(db: Session) -> User:
            restore(db, user)
            return user

        return in_transaction(self.db, _restore)
