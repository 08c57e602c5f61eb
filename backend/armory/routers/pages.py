"""Public pages"""
from typing import Optional

from fastapi import APIRouter, Depends, Request

from armory.core.templates import TemplateRenderer, get_renderer
from armory.models.user import User
from armory.routers.deps import get_current_user

router = APIRouter(tags=["pages"])


@router.get("/")
def home(
    request: Request,
    user: Optional[User] = Depends(get_current_user),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    return renderer.render(request, "home.html", {"user": user})
