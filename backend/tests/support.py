"""
Test doubles and helpers shared by unit and integration tests.
"""
from typing import Optional
from urllib.parse import unquote

from fastapi.responses import HTMLResponse
from fastapi.testclient import TestClient

from armory.core.database import utcnow
from armory.core.errors import AlreadyExists
from armory.core.session import LOGGED_IN_COOKIE, USER_EMAIL_COOKIE
from armory.models.user import User
from armory.services import tier_policy
from armory.services.auth_service import hash_password

TEST_PASSWORD = "correct-horse-battery"


class RecordingRenderer:
    """Records every render instead of running Jinja2"""

    def __init__(self):
        self.calls = []

    def render(self, request, template_name: str, context: Optional[dict] = None, status_code: int = 200):
        self.calls.append({"template": template_name, "context": context or {}, "status_code": status_code})
        return HTMLResponse(f"<!-- {template_name} -->", status_code=status_code)

    @property
    def last(self) -> dict:
        return self.calls[-1]


class RecordingMailer:
    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.verifications = []
        self.resets = []

    def send_verification_email(self, to_email: str, verify_url: str) -> bool:
        self.verifications.append((to_email, verify_url))
        return self.succeed

    def send_password_reset_email(self, to_email: str, reset_url: str) -> bool:
        self.resets.append((to_email, reset_url))
        return self.succeed


class InMemoryUserRepository:
    """Dict-backed user storage for auth service tests"""

    def __init__(self):
        self.users: dict[int, User] = {}
        self._next_id = 1

    def _active(self):
        return (u for u in self.users.values() if not u.is_deleted)

    def get_by_id(self, user_id: int) -> Optional[User]:
        user = self.users.get(user_id)
        return user if user and not user.is_deleted else None

    def get_by_email(self, email: str, include_deleted: bool = False) -> Optional[User]:
        candidates = self.users.values() if include_deleted else self._active()
        return next((u for u in candidates if u.email == email), None)

    def get_by_confirm_token(self, token: str) -> Optional[User]:
        return next((u for u in self._active() if u.confirm_token == token), None)

    def get_by_recover_token(self, token: str) -> Optional[User]:
        return next((u for u in self._active() if u.recover_token == token), None)

    def add(self, user: User) -> User:
        if any(u.email == user.email for u in self.users.values()):
            raise AlreadyExists()
        user.id = self._next_id
        self._next_id += 1
        self.users[user.id] = user
        return user

    def save(self, user: User) -> User:
        self.users[user.id] = user
        return user

    def soft_delete(self, user: User) -> User:
        user.deleted_at = utcnow()
        return user

    def restore(self, user: User) -> User:
        user.deleted_at = None
        return user


def make_user(
    db,
    email: str = "owner@example.com",
    password: str = TEST_PASSWORD,
    tier: str = tier_policy.FREE,
    expires_at=None,
    confirmed: bool = True,
    is_admin: bool = False,
    canceled: bool = False,
    created_at=None,
) -> User:
    user = User(
        email=email,
        password_hash=hash_password(password),
        is_admin=is_admin,
        confirmed=confirmed,
        attempt_count=0,
        subscription_tier=tier,
        subscription_expires_at=expires_at,
        subscription_canceled=canceled,
    )
    if created_at is not None:
        user.created_at = created_at
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def login(client: TestClient, user: User) -> TestClient:
    client.cookies.set(LOGGED_IN_COOKIE, "true")
    client.cookies.set(USER_EMAIL_COOKIE, user.email)
    return client


def flash_of(response):
    """(message, type) of the flash set on a response, or (None, None)"""
    message = response.cookies.get("flash_message")
    if message is None:
        return None, None
    return unquote(message.strip('"')), response.cookies.get("flash_type")
