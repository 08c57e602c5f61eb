"""Account deletion (soft) and reactivation"""
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse

from armory.core.errors import ValidationFailed
from armory.core.flash import redirect_with_flash, set_flash
from armory.core.session import clear_login_cookies, set_login_cookies
from armory.core.templates import TemplateRenderer, get_renderer
from armory.models.user import User
from armory.routers.deps import get_user_repository, require_login
from armory.services import auth_service
from armory.services.user_repository import UserRepository

router = APIRouter(tags=["account"])


@router.get("/owner/delete-account")
def delete_account_page(
    request: Request,
    user: User = Depends(require_login),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    return renderer.render(request, "account/delete.html", {"user": user})


@router.post("/owner/delete-account")
def delete_account(
    request: Request,
    confirmation: str = Form(""),
    password: str = Form(""),
    user: User = Depends(require_login),
    repo: UserRepository = Depends(get_user_repository),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    try:
        auth_service.delete_account(repo, user, confirmation, password)
    except ValidationFailed as e:
        return renderer.render(request, "account/delete.html", {"user": user, "error": e.message})

    response = redirect_with_flash("/", "Sorry to see you go. Your account has been deleted.", "info")
    clear_login_cookies(response)
    return response


@router.get("/reactivate", name="reactivate_page")
def reactivate_page(
    request: Request,
    email: Optional[str] = None,
    renderer: TemplateRenderer = Depends(get_renderer),
):
    return renderer.render(request, "account/reactivate.html", {"email": email or ""})


@router.post("/reactivate")
def reactivate(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    repo: UserRepository = Depends(get_user_repository),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    email = email.strip()
    try:
        user = auth_service.reactivate(repo, email, password)
    except ValidationFailed as e:
        return renderer.render(
            request, "account/reactivate.html", {"email": email, "error": e.message}, status_code=400
        )

    response = RedirectResponse(url="/owner", status_code=303)
    set_login_cookies(response, user.email)
    set_flash(response, "Welcome back! Your account has been reactivated.", "success")
    return response
