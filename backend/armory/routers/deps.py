"""Shared dependencies: current user, login and admin guards"""
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from armory.core.database import get_db
from armory.core.errors import Forbidden, Unauthorized
from armory.core.session import session_email
from armory.models.user import User
from armory.services.user_repository import SqlUserRepository, UserRepository


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return SqlUserRepository(db)


def get_current_user(
    request: Request,
    repo: UserRepository = Depends(get_user_repository),
) -> Optional[User]:
    """Cookies -> active user. None when logged out or the account is gone."""
    email = session_email(request)
    if not email:
        return None
    return repo.get_by_email(email)


def require_login(user: Optional[User] = Depends(get_current_user)) -> User:
    """Unauthorized is rendered as a redirect to /login"""
    if user is None:
        raise Unauthorized()
    return user


def require_admin(user: User = Depends(require_login)) -> User:
    """Forbidden is rendered as a redirect to /owner"""
    if not user.is_admin:
        raise Forbidden()
    return user


def wants_json(request: Request) -> bool:
    return "application/json" in request.headers.get("Accept", "")
