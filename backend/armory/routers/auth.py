"""Auth pages: registration, email verification, login, logout, password recovery"""
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from armory.core.config import settings
from armory.core.errors import AlreadyExists, ValidationFailed
from armory.core.flash import redirect_with_flash, set_flash
from armory.core.rate_limit import LOGIN_RATE_LIMIT, PASSWORD_RESET_RATE_LIMIT, limiter
from armory.core.session import clear_login_cookies, set_login_cookies
from armory.core.templates import TemplateRenderer, get_renderer
from armory.routers.deps import get_user_repository
from armory.schemas.auth import EmailAddress
from armory.services import auth_service
from armory.services.auth_service import LoginOutcome, RegisterOutcome
from armory.services.mail_service import Mailer, get_mailer
from armory.services.user_repository import UserRepository

router = APIRouter(tags=["auth"])

RECOVERY_SENT_MESSAGE = "If an account exists with that email, you will receive password reset instructions shortly."
RESET_LINK_INVALID_MESSAGE = "This password reset link is invalid or has expired"


def _base_url() -> str:
    return settings.APP_BASE_URL.rstrip("/")


def _is_email(value: str) -> bool:
    try:
        EmailAddress(email=value)
    except ValidationError:
        return False
    return True


# =========================================================
# Registration
# =========================================================

@router.get("/register")
def register_page(request: Request, renderer: TemplateRenderer = Depends(get_renderer)):
    return renderer.render(request, "auth/register.html")


@router.post("/register")
def register(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    repo: UserRepository = Depends(get_user_repository),
    mailer: Mailer = Depends(get_mailer),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    email = email.strip()

    def form_error(message: str, status_code: int):
        return renderer.render(request, "auth/register.html", {"email": email, "error": message}, status_code)

    if not email or not password or not confirm_password:
        return form_error("All fields are required", 400)
    if not _is_email(email):
        return form_error("Please enter a valid email address", 400)
    problem = auth_service.check_new_password(password, confirm_password)
    if problem:
        return form_error(problem, 200)

    try:
        result = auth_service.register(repo, email, password)
    except AlreadyExists as e:
        return form_error(e.message, 400)

    if result.outcome is RegisterOutcome.DELETED_ACCOUNT:
        return RedirectResponse(url=f"/reactivate?{urlencode({'email': email})}", status_code=303)

    response = RedirectResponse(url="/verification-pending", status_code=303)
    verify_url = f"{_base_url()}/verify/{result.user.confirm_token}"
    if mailer.send_verification_email(email, verify_url):
        set_flash(response, "Registration successful! Please check your email to verify your account.", "success")
    else:
        set_flash(
            response,
            "Your account was created, but we couldn't send the verification email. "
            "Please use Resend Verification to try again.",
            "warning",
        )
    return response


@router.get("/verification-pending")
def verification_pending(request: Request, renderer: TemplateRenderer = Depends(get_renderer)):
    return renderer.render(request, "auth/verification_pending.html")


@router.post("/resend-verification")
def resend_verification(
    request: Request,
    email: str = Form(""),
    repo: UserRepository = Depends(get_user_repository),
    mailer: Mailer = Depends(get_mailer),
):
    """Same response whether or not the email belongs to an unconfirmed account"""
    user = auth_service.resend_verification(repo, email.strip())
    if user is not None and not mailer.send_verification_email(
        user.email, f"{_base_url()}/verify/{user.confirm_token}"
    ):
        return redirect_with_flash(
            "/verification-pending", "We couldn't send the verification email. Please try again later.", "warning"
        )
    return redirect_with_flash(
        "/verification-pending",
        "If that account is awaiting verification, a new verification email has been sent.",
        "info",
    )


@router.get("/verify/{token}")
def verify_email(
    request: Request,
    token: str,
    repo: UserRepository = Depends(get_user_repository),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    user = auth_service.confirm_email(repo, token)
    if user is None:
        return renderer.render(
            request, "auth/verify_error.html",
            {"error": "This verification link is invalid or has expired."},
        )
    return redirect_with_flash("/login?verified=true", "Your email has been verified. You can now log in.", "success")


# =========================================================
# Login / logout
# =========================================================

@router.get("/login")
def login_page(
    request: Request,
    verified: Optional[str] = None,
    renderer: TemplateRenderer = Depends(get_renderer),
):
    return renderer.render(request, "auth/login.html", {"verified": verified == "true"})


@router.post("/login")
@limiter.limit(LOGIN_RATE_LIMIT)
def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    repo: UserRepository = Depends(get_user_repository),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    email = email.strip()
    result = auth_service.authenticate(repo, email, password)
    if result.outcome is not LoginOutcome.SUCCESS:
        return renderer.render(request, "auth/login.html", {"email": email, "error": result.message})

    response = RedirectResponse(url="/owner", status_code=303)
    set_login_cookies(response, result.user.email)
    return response


@router.get("/logout")
def logout():
    response = redirect_with_flash("/", "You have been successfully logged out", "success")
    clear_login_cookies(response)
    return response


# =========================================================
# Password recovery
# =========================================================

@router.get("/recover")
def recover_page(request: Request, renderer: TemplateRenderer = Depends(get_renderer)):
    return renderer.render(request, "auth/recover.html")


@router.post("/recover")
@limiter.limit(PASSWORD_RESET_RATE_LIMIT)
def recover(
    request: Request,
    email: str = Form(""),
    repo: UserRepository = Depends(get_user_repository),
    mailer: Mailer = Depends(get_mailer),
):
    user = auth_service.create_recovery(repo, email.strip())
    if user is not None:
        mailer.send_password_reset_email(user.email, f"{_base_url()}/reset-password/{user.recover_token}")
    return redirect_with_flash("/login", RECOVERY_SENT_MESSAGE, "info")


@router.get("/reset-password/{token}")
def reset_password_page(
    request: Request,
    token: str,
    repo: UserRepository = Depends(get_user_repository),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    if auth_service.user_for_recover_token(repo, token) is None:
        return redirect_with_flash("/recover", RESET_LINK_INVALID_MESSAGE, "error")
    return renderer.render(request, "auth/reset_password.html", {"token": token})


@router.post("/reset-password/{token}")
@limiter.limit(PASSWORD_RESET_RATE_LIMIT)
def reset_password(
    request: Request,
    token: str,
    password: str = Form(""),
    confirm_password: str = Form(""),
    repo: UserRepository = Depends(get_user_repository),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    if auth_service.user_for_recover_token(repo, token) is None:
        return redirect_with_flash("/recover", RESET_LINK_INVALID_MESSAGE, "error")
    try:
        auth_service.reset_password(repo, token, password, confirm_password)
    except ValidationFailed as e:
        return renderer.render(request, "auth/reset_password.html", {"token": token, "error": e.message})
    return redirect_with_flash("/login", "Your password has been reset. Please log in.", "success")
