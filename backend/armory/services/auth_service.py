"""Registration, confirmation, login, recovery and the account lifecycle"""
import enum
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import bcrypt

from armory.core.database import utcnow
from armory.core.errors import AlreadyExists, ValidationFailed
from armory.core.logging import get_logger
from armory.models.user import User
from armory.services import tier_policy
from armory.services.user_repository import UserRepository

logger = get_logger(__name__)

CONFIRM_TOKEN_TTL = timedelta(hours=24)
RECOVER_TOKEN_TTL = timedelta(hours=1)
MIN_PASSWORD_LENGTH = 8

EMAIL_TAKEN_MESSAGE = "Email already registered"
PASSWORD_MISMATCH_MESSAGE = "Passwords do not match"
PASSWORD_TOO_SHORT_MESSAGE = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
INVALID_LOGIN_MESSAGE = "Invalid email or password"
UNCONFIRMED_MESSAGE = "Please verify your email before logging in"
DELETE_CONFIRMATION_WORD = "DELETE"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def check_new_password(password: str, confirm_password: str) -> Optional[str]:
    """Message describing what is wrong with a new password, or None"""
    if password != confirm_password:
        return PASSWORD_MISMATCH_MESSAGE
    if len(password) < MIN_PASSWORD_LENGTH:
        return PASSWORD_TOO_SHORT_MESSAGE
    return None


def _token_expired(expiry: Optional[datetime], now: datetime) -> bool:
    return expiry is None or expiry <= now


# =========================================================
# Registration and confirmation
# =========================================================

class RegisterOutcome(enum.Enum):
    CREATED = "created"
    DELETED_ACCOUNT = "deleted_account"


@dataclass
class RegisterResult:
    outcome: RegisterOutcome
    user: User


def _issue_confirm_token(user: User, now: datetime) -> None:
    user.confirm_token = secrets.token_hex(32)
    user.confirm_token_expiry = now + CONFIRM_TOKEN_TTL


def register(repo: UserRepository, email: str, password: str, now: Optional[datetime] = None) -> RegisterResult:
    """Create an unconfirmed user.

    A soft-deleted account with the same email is reported as DELETED_ACCOUNT
    and nothing is inserted; an active one raises AlreadyExists.
    """
    now = now or utcnow()
    existing = repo.get_by_email(email, include_deleted=True)
    if existing is not None:
        if existing.is_deleted:
            logger.info(f"Registration for deleted account redirected to reactivation: {email}")
            return RegisterResult(RegisterOutcome.DELETED_ACCOUNT, existing)
        raise AlreadyExists(EMAIL_TAKEN_MESSAGE)

    user = User(
        email=email,
        password_hash=hash_password(password),
        is_admin=False,
        confirmed=False,
        attempt_count=0,
        subscription_tier=tier_policy.FREE,
        subscription_canceled=False,
    )
    _issue_confirm_token(user, now)
    try:
        user = repo.add(user)
    except AlreadyExists as e:
        raise AlreadyExists(EMAIL_TAKEN_MESSAGE) from e
    logger.info(f"User registered: id={user.id}, email={email}")
    return RegisterResult(RegisterOutcome.CREATED, user)


def confirm_email(repo: UserRepository, token: str, now: Optional[datetime] = None) -> Optional[User]:
    """Confirm the user holding token. None for unknown or expired tokens."""
    now = now or utcnow()
    user = repo.get_by_confirm_token(token) if token else None
    if user is None or _token_expired(user.confirm_token_expiry, now):
        return None

    user.confirmed = True
    user.confirm_token = None
    user.confirm_token_expiry = None
    repo.save(user)
    logger.info(f"Email confirmed: user_id={user.id}")
    return user


def resend_verification(repo: UserRepository, email: str, now: Optional[datetime] = None) -> Optional[User]:
    """Fresh confirmation token for an unconfirmed user, or None"""
    user = repo.get_by_email(email) if email else None
    if user is None or user.confirmed:
        return None
    _issue_confirm_token(user, now or utcnow())
    return repo.save(user)


# =========================================================
# Login
# =========================================================

class LoginOutcome(enum.Enum):
    SUCCESS = "success"
    INVALID = "invalid"
    UNCONFIRMED = "unconfirmed"


@dataclass
class LoginResult:
    outcome: LoginOutcome
    user: Optional[User] = None

    @property
    def message(self) -> str:
        if self.outcome is LoginOutcome.UNCONFIRMED:
            return UNCONFIRMED_MESSAGE
        if self.outcome is LoginOutcome.INVALID:
            return INVALID_LOGIN_MESSAGE
        return ""


def authenticate(repo: UserRepository, email: str, password: str, now: Optional[datetime] = None) -> LoginResult:
    """Check credentials and keep the attempt counters up to date"""
    user = repo.get_by_email(email) if email else None
    if user is None:
        logger.info(f"Login failed for unknown email: {email}")
        return LoginResult(LoginOutcome.INVALID)

    user.last_attempt = now or utcnow()
    if not verify_password(password, user.password_hash):
        user.attempt_count = (user.attempt_count or 0) + 1
        repo.save(user)
        logger.info(f"Login failed: user_id={user.id}, attempts={user.attempt_count}")
        return LoginResult(LoginOutcome.INVALID, user)

    if not user.confirmed:
        repo.save(user)
        return LoginResult(LoginOutcome.UNCONFIRMED, user)

    user.attempt_count = 0
    repo.save(user)
    logger.info(f"Login succeeded: user_id={user.id}")
    return LoginResult(LoginOutcome.SUCCESS, user)


# =========================================================
# Password recovery
# =========================================================

def create_recovery(repo: UserRepository, email: str, now: Optional[datetime] = None) -> Optional[User]:
    """Issue a recovery token. None when no active user has that email."""
    user = repo.get_by_email(email) if email else None
    if user is None:
        return None
    user.recover_token = secrets.token_urlsafe(32)
    user.recover_token_expiry = (now or utcnow()) + RECOVER_TOKEN_TTL
    repo.save(user)
    logger.info(f"Password recovery issued: user_id={user.id}")
    return user


def user_for_recover_token(repo: UserRepository, token: str, now: Optional[datetime] = None) -> Optional[User]:
    user = repo.get_by_recover_token(token) if token else None
    if user is None or _token_expired(user.recover_token_expiry, now or utcnow()):
        return None
    return user


def reset_password(
    repo: UserRepository, token: str, password: str, confirm_password: str, now: Optional[datetime] = None
) -> User:
    """Set a new password through a recovery token; raises ValidationFailed"""
    user = user_for_recover_token(repo, token, now)
    if user is None:
        raise ValidationFailed("This password reset link is invalid or has expired")
    problem = check_new_password(password, confirm_password)
    if problem:
        raise ValidationFailed(problem)

    user.password_hash = hash_password(password)
    user.recover_token = None
    user.recover_token_expiry = None
    user.attempt_count = 0
    repo.save(user)
    logger.info(f"Password reset: user_id={user.id}")
    return user


# =========================================================
# Deletion and reactivation
# =========================================================

def delete_account(repo: UserRepository, user: User, confirmation: str, password: str) -> User:
    """Soft-delete after the typed confirmation and the password check.

    Payments and firearms are kept so the account can be reactivated intact.
    """
    confirmation = (confirmation or "").strip()
    if confirmation != DELETE_CONFIRMATION_WORD:
        if confirmation.upper() == DELETE_CONFIRMATION_WORD:
            raise ValidationFailed("Please type DELETE exactly as shown (all uppercase)")
        raise ValidationFailed("Please type DELETE to confirm account deletion")
    if not password:
        raise ValidationFailed("Please enter your password")
    if not verify_password(password, user.password_hash):
        raise ValidationFailed("Invalid password")

    repo.soft_delete(user)
    logger.info(f"Account deleted: user_id={user.id}")
    return user


def reactivate(repo: UserRepository, email: str, password: str) -> User:
    """Restore a soft-deleted account; the subscription is left exactly as it was"""
    if not email or not password:
        raise ValidationFailed("Please enter your email and password")
    user = repo.get_by_email(email, include_deleted=True)
    if user is None or not user.is_deleted:
        raise ValidationFailed("No deleted account was found for that email")
    if not verify_password(password, user.password_hash):
        raise ValidationFailed("Invalid password")

    repo.restore(user)
    logger.info(f"Account reactivated: user_id={user.id}, tier={user.subscription_tier}")
    return user
