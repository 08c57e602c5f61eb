"""Two-cookie login session: is_logged_in=true and user_email"""
from typing import Optional

from starlette.requests import Request
from starlette.responses import Response

from armory.core.config import settings

LOGGED_IN_COOKIE = "is_logged_in"
USER_EMAIL_COOKIE = "user_email"


def set_login_cookies(response: Response, email: str) -> None:
    for key, value in ((LOGGED_IN_COOKIE, "true"), (USER_EMAIL_COOKIE, email)):
        response.set_cookie(
            key=key,
            value=value,
            max_age=settings.SESSION_MAX_AGE_SECONDS,
            path="/",
            httponly=True,
            secure=settings.is_production,
            samesite="lax",
        )


def clear_login_cookies(response: Response) -> None:
    response.delete_cookie(LOGGED_IN_COOKIE, path="/")
    response.delete_cookie(USER_EMAIL_COOKIE, path="/")


def session_email(request: Request) -> Optional[str]:
    """Email of the logged-in user, or None when the cookies are absent"""
    if request.cookies.get(LOGGED_IN_COOKIE) != "true":
        return None
    return request.cookies.get(USER_EMAIL_COOKIE) or None
