"""
Unit tests for transactional mail.
"""
from unittest.mock import patch

from armory.services.mail_service import ConsoleMailer, ResendMailer, get_mailer


class TestResendMailer:
    @patch("armory.services.mail_service.resend.Emails.send")
    def test_verification_email(self, mock_send):
        mailer = ResendMailer("re_test_key", "noreply@example.com")

        ok = mailer.send_verification_email("owner@example.com", "http://localhost:8080/verify/abc")

        assert ok is True
        params = mock_send.call_args.args[0]
        assert params["from"] == "noreply@example.com"
        assert params["to"] == ["owner@example.com"]
        assert "verify your email" in params["subject"]
        assert "http://localhost:8080/verify/abc" in params["html"]

    @patch("armory.services.mail_service.resend.Emails.send")
    def test_password_reset_email(self, mock_send):
        mailer = ResendMailer("re_test_key", "noreply@example.com")

        assert mailer.send_password_reset_email("owner@example.com", "http://localhost:8080/reset-password/xyz")
        assert "http://localhost:8080/reset-password/xyz" in mock_send.call_args.args[0]["html"]

    @patch("armory.services.mail_service.resend.Emails.send", side_effect=RuntimeError("provider down"))
    def test_failure_returns_false(self, mock_send):
        mailer = ResendMailer("re_test_key", "noreply@example.com")

        assert mailer.send_verification_email("owner@example.com", "http://x/verify/abc") is False


class TestMailerSelection:
    def test_console_mailer_in_test_mode(self):
        assert isinstance(get_mailer(), ConsoleMailer)

    def test_console_mailer_always_succeeds(self):
        assert ConsoleMailer().send_password_reset_email("a@example.com", "http://x/reset-password/1")
