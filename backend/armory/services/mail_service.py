"""Transactional mail (email verification, password reset)"""
from pathlib import Path
from typing import Protocol

import resend
from jinja2 import Environment, FileSystemLoader, select_autoescape

from armory.core.config import settings
from armory.core.logging import get_logger

logger = get_logger(__name__)

template_dir = Path(__file__).parent.parent / "templates" / "email"
jinja_env = Environment(
    loader=FileSystemLoader(str(template_dir)),
    autoescape=select_autoescape(["html"]),
)


class Mailer(Protocol):
    """Each send returns False on failure instead of raising"""

    def send_verification_email(self, to_email: str, verify_url: str) -> bool:
        ...

    def send_password_reset_email(self, to_email: str, reset_url: str) -> bool:
        ...


class ResendMailer:
    def __init__(self, api_key: str, from_email: str):
        self.api_key = api_key
        self.from_email = from_email

    def _send(self, to_email: str, subject: str, template_name: str, **context) -> bool:
        try:
            resend.api_key = self.api_key
            html = jinja_env.get_template(template_name).render(site_name=settings.SITE_NAME, **context)
            resend.Emails.send({
                "from": self.from_email,
                "to": [to_email],
                "subject": subject,
                "html": html,
            })
            logger.info(f"Mail sent: to={to_email}, template={template_name}")
            return True
        except Exception as e:
            logger.error(f"Mail send failed: to={to_email}, template={template_name} - {e}")
            return False

    def send_verification_email(self, to_email: str, verify_url: str) -> bool:
        return self._send(
            to_email, f"{settings.SITE_NAME}: verify your email", "verify_email.html", verify_url=verify_url
        )

    def send_password_reset_email(self, to_email: str, reset_url: str) -> bool:
        return self._send(
            to_email, f"{settings.SITE_NAME}: reset your password", "password_reset.html", reset_url=reset_url
        )


class ConsoleMailer:
    """Logs the links instead of sending, for development and test mode"""

    def send_verification_email(self, to_email: str, verify_url: str) -> bool:
        logger.info(f"Verification link for {to_email}: {verify_url}")
        return True

    def send_password_reset_email(self, to_email: str, reset_url: str) -> bool:
        logger.info(f"Password reset link for {to_email}: {reset_url}")
        return True


def get_mailer() -> Mailer:
    """FastAPI dependency, overridden in tests"""
    if settings.mail_enabled:
        return ResendMailer(settings.RESEND_API_KEY, settings.MAIL_FROM)
    return ConsoleMailer()
