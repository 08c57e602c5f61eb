"""One-shot flash messages carried across a redirect in two short-lived cookies"""
from typing import Optional
from urllib.parse import quote, unquote

from fastapi.responses import RedirectResponse
from starlette.requests import Request
from starlette.responses import Response

from armory.core.config import settings

FLASH_MESSAGE_COOKIE = "flash_message"
FLASH_TYPE_COOKIE = "flash_type"
FLASH_TYPES = ("success", "error", "warning", "info", "")


def set_flash(response: Response, message: str, flash_type: str = "info") -> None:
    if flash_type not in FLASH_TYPES:
        flash_type = "info"
    response.set_cookie(
        FLASH_MESSAGE_COOKIE, quote(message), max_age=settings.FLASH_MAX_AGE_SECONDS, path="/", httponly=True
    )
    response.set_cookie(
        FLASH_TYPE_COOKIE, flash_type, max_age=settings.FLASH_MAX_AGE_SECONDS, path="/", httponly=True
    )


def read_flash(request: Request) -> Optional[dict]:
    message = request.cookies.get(FLASH_MESSAGE_COOKIE)
    if not message:
        return None
    return {"message": unquote(message), "type": request.cookies.get(FLASH_TYPE_COOKIE, "")}


def clear_flash(response: Response) -> None:
    response.delete_cookie(FLASH_MESSAGE_COOKIE, path="/")
    response.delete_cookie(FLASH_TYPE_COOKIE, path="/")


def redirect_with_flash(url: str, message: str, flash_type: str = "info", status_code: int = 303) -> RedirectResponse:
    response = RedirectResponse(url=url, status_code=status_code)
    set_flash(response, message, flash_type)
    return response
