"""
Unit tests for registration, confirmation, login, recovery and the account
lifecycle, run against an in-memory user repository.
"""
from datetime import datetime, timedelta

import pytest

from armory.core.errors import AlreadyExists, ValidationFailed
from armory.services import auth_service, tier_policy
from armory.services.auth_service import LoginOutcome, RegisterOutcome

from support import InMemoryUserRepository

NOW = datetime(2025, 3, 15, 12, 0, 0)
PASSWORD = "s3cret-password"


@pytest.fixture
def repo():
    return InMemoryUserRepository()


@pytest.fixture
def confirmed_user(repo):
    user = auth_service.register(repo, "shooter@example.com", PASSWORD, NOW).user
    auth_service.confirm_email(repo, user.confirm_token, NOW)
    return user


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = auth_service.hash_password(PASSWORD)

        assert hashed != PASSWORD
        assert auth_service.verify_password(PASSWORD, hashed)
        assert not auth_service.verify_password("wrong-password", hashed)

    def test_empty_inputs_never_verify(self):
        assert not auth_service.verify_password("", auth_service.hash_password(PASSWORD))
        assert not auth_service.verify_password(PASSWORD, "")

    def test_mismatch_is_reported_before_length(self):
        assert auth_service.check_new_password("short", "other") == auth_service.PASSWORD_MISMATCH_MESSAGE

    def test_too_short(self):
        assert auth_service.check_new_password("short", "short") == auth_service.PASSWORD_TOO_SHORT_MESSAGE

    def test_acceptable(self):
        assert auth_service.check_new_password(PASSWORD, PASSWORD) is None


class TestRegister:
    def test_creates_unconfirmed_free_user(self, repo):
        result = auth_service.register(repo, "new@example.com", PASSWORD, NOW)

        user = result.user
        assert result.outcome is RegisterOutcome.CREATED
        assert user.confirmed is False
        assert user.subscription_tier == tier_policy.FREE
        assert user.is_admin is False
        assert len(user.confirm_token) == 64
        assert user.confirm_token_expiry == NOW + timedelta(hours=24)
        assert auth_service.verify_password(PASSWORD, user.password_hash)

    def test_active_email_collision(self, repo, confirmed_user):
        with pytest.raises(AlreadyExists) as exc_info:
            auth_service.register(repo, confirmed_user.email, PASSWORD, NOW)

        assert exc_info.value.message == auth_service.EMAIL_TAKEN_MESSAGE

    def test_deleted_account_is_reported(self, repo, confirmed_user):
        auth_service.delete_account(repo, confirmed_user, "DELETE", PASSWORD)

        result = auth_service.register(repo, confirmed_user.email, "another-password", NOW)

        assert result.outcome is RegisterOutcome.DELETED_ACCOUNT
        assert len(repo.users) == 1


class TestConfirm:
    def test_confirm_clears_token(self, repo):
        user = auth_service.register(repo, "c@example.com", PASSWORD, NOW).user
        token = user.confirm_token

        confirmed = auth_service.confirm_email(repo, token, NOW + timedelta(hours=1))

        assert confirmed is user
        assert user.confirmed is True
        assert user.confirm_token is None

    def test_expired_token(self, repo):
        user = auth_service.register(repo, "c@example.com", PASSWORD, NOW).user

        assert auth_service.confirm_email(repo, user.confirm_token, NOW + timedelta(hours=25)) is None
        assert user.confirmed is False

    def test_unknown_token(self, repo):
        assert auth_service.confirm_email(repo, "nope", NOW) is None
        assert auth_service.confirm_email(repo, "", NOW) is None

    def test_resend_issues_new_token(self, repo):
        user = auth_service.register(repo, "c@example.com", PASSWORD, NOW).user
        old_token = user.confirm_token

        refreshed = auth_service.resend_verification(repo, "c@example.com", NOW + timedelta(hours=2))

        assert refreshed is user
        assert user.confirm_token != old_token
        assert user.confirm_token_expiry == NOW + timedelta(hours=26)

    def test_resend_for_confirmed_user(self, repo, confirmed_user):
        assert auth_service.resend_verification(repo, confirmed_user.email, NOW) is None


class TestAuthenticate:
    def test_success_resets_attempts(self, repo, confirmed_user):
        confirmed_user.attempt_count = 3

        result = auth_service.authenticate(repo, confirmed_user.email, PASSWORD, NOW)

        assert result.outcome is LoginOutcome.SUCCESS
        assert result.message == ""
        assert confirmed_user.attempt_count == 0
        assert confirmed_user.last_attempt == NOW

    def test_wrong_password_counts_attempt(self, repo, confirmed_user):
        result = auth_service.authenticate(repo, confirmed_user.email, "wrong-password", NOW)

        assert result.outcome is LoginOutcome.INVALID
        assert result.message == auth_service.INVALID_LOGIN_MESSAGE
        assert confirmed_user.attempt_count == 1

    def test_unknown_email(self, repo):
        result = auth_service.authenticate(repo, "ghost@example.com", PASSWORD, NOW)

        assert result.outcome is LoginOutcome.INVALID
        assert result.user is None

    def test_unconfirmed(self, repo):
        auth_service.register(repo, "u@example.com", PASSWORD, NOW)

        result = auth_service.authenticate(repo, "u@example.com", PASSWORD, NOW)

        assert result.outcome is LoginOutcome.UNCONFIRMED
        assert result.message == auth_service.UNCONFIRMED_MESSAGE

    def test_unconfirmed_with_wrong_password_is_invalid(self, repo):
        auth_service.register(repo, "u@example.com", PASSWORD, NOW)

        result = auth_service.authenticate(repo, "u@example.com", "wrong-password", NOW)

        assert result.outcome is LoginOutcome.INVALID

    def test_deleted_account_cannot_log_in(self, repo, confirmed_user):
        auth_service.delete_account(repo, confirmed_user, "DELETE", PASSWORD)

        result = auth_service.authenticate(repo, confirmed_user.email, PASSWORD, NOW)

        assert result.outcome is LoginOutcome.INVALID


class TestRecovery:
    def test_reset_password_flow(self, repo, confirmed_user):
        user = auth_service.create_recovery(repo, confirmed_user.email, NOW)
        token = user.recover_token

        auth_service.reset_password(repo, token, "brand-new-password", "brand-new-password", NOW + timedelta(minutes=30))

        assert user.recover_token is None
        assert auth_service.verify_password("brand-new-password", user.password_hash)
        assert auth_service.user_for_recover_token(repo, token, NOW) is None

    def test_unknown_email_issues_nothing(self, repo):
        assert auth_service.create_recovery(repo, "ghost@example.com", NOW) is None

    def test_token_expires_after_an_hour(self, repo, confirmed_user):
        token = auth_service.create_recovery(repo, confirmed_user.email, NOW).recover_token

        assert auth_service.user_for_recover_token(repo, token, NOW + timedelta(minutes=59)) is confirmed_user
        with pytest.raises(ValidationFailed):
            auth_service.reset_password(repo, token, "brand-new-password", "brand-new-password", NOW + timedelta(hours=2))

    def test_new_password_rules_apply(self, repo, confirmed_user):
        token = auth_service.create_recovery(repo, confirmed_user.email, NOW).recover_token

        with pytest.raises(ValidationFailed) as exc_info:
            auth_service.reset_password(repo, token, "brand-new-password", "different-password", NOW)

        assert exc_info.value.message == auth_service.PASSWORD_MISMATCH_MESSAGE


class TestDeleteAccount:
    @pytest.mark.parametrize("confirmation,message", [
        ("delete", "Please type DELETE exactly as shown (all uppercase)"),
        ("Delete", "Please type DELETE exactly as shown (all uppercase)"),
        ("", "Please type DELETE to confirm account deletion"),
        ("remove", "Please type DELETE to confirm account deletion"),
    ])
    def test_confirmation_word(self, repo, confirmed_user, confirmation, message):
        with pytest.raises(ValidationFailed) as exc_info:
            auth_service.delete_account(repo, confirmed_user, confirmation, PASSWORD)

        assert exc_info.value.message == message
        assert not confirmed_user.is_deleted

    def test_password_required(self, repo, confirmed_user):
        with pytest.raises(ValidationFailed) as exc_info:
            auth_service.delete_account(repo, confirmed_user, "DELETE", "")

        assert exc_info.value.message == "Please enter your password"

    def test_wrong_password(self, repo, confirmed_user):
        with pytest.raises(ValidationFailed) as exc_info:
            auth_service.delete_account(repo, confirmed_user, "DELETE", "wrong-password")

        assert exc_info.value.message == "Invalid password"

    def test_soft_delete(self, repo, confirmed_user):
        auth_service.delete_account(repo, confirmed_user, "DELETE", PASSWORD)

        assert confirmed_user.is_deleted
        assert repo.get_by_email(confirmed_user.email) is None
        assert repo.get_by_email(confirmed_user.email, include_deleted=True) is confirmed_user


class TestReactivate:
    def test_restores_account_with_subscription(self, repo, confirmed_user):
        confirmed_user.subscription_tier = tier_policy.LIFETIME
        auth_service.delete_account(repo, confirmed_user, "DELETE", PASSWORD)

        user = auth_service.reactivate(repo, confirmed_user.email, PASSWORD)

        assert not user.is_deleted
        assert user.subscription_tier == tier_policy.LIFETIME

    def test_missing_fields(self, repo):
        with pytest.raises(ValidationFailed) as exc_info:
            auth_service.reactivate(repo, "", PASSWORD)

        assert exc_info.value.message == "Please enter your email and password"

    def test_active_account_is_not_reactivated(self, repo, confirmed_user):
        with pytest.raises(ValidationFailed) as exc_info:
            auth_service.reactivate(repo, confirmed_user.email, PASSWORD)

        assert exc_info.value.message == "No deleted account was found for that email"

    def test_wrong_password(self, repo, confirmed_user):
        auth_service.delete_account(repo, confirmed_user, "DELETE", PASSWORD)

        with pytest.raises(ValidationFailed) as exc_info:
            auth_service.reactivate(repo, confirmed_user.email, "wrong-password")

        assert exc_info.value.message == "Invalid password"
        assert confirmed_user.is_deleted
