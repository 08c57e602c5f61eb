"""HTML rendering behind a narrow interface so routes never touch Jinja2 directly"""
from pathlib import Path
from typing import Optional, Protocol

from fastapi.responses import HTMLResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.requests import Request
from starlette.responses import Response

from armory.core.config import settings
from armory.core.flash import clear_flash, read_flash

template_dir = Path(__file__).parent.parent / "templates"


class TemplateRenderer(Protocol):
    def render(
        self, request: Request, template_name: str, context: Optional[dict] = None, status_code: int = 200
    ) -> Response:
        ...


class JinjaRenderer:
    """Renders templates/ and consumes any pending flash message"""

    def __init__(self, directory: Path = template_dir):
        self.env = Environment(
            loader=FileSystemLoader(str(directory)),
            autoescape=select_autoescape(["html"]),
        )

    def render(
        self, request: Request, template_name: str, context: Optional[dict] = None, status_code: int = 200
    ) -> Response:
        flash = read_flash(request)
        html = self.env.get_template(template_name).render(
            request=request,
            flash=flash,
            site_name=settings.SITE_NAME,
            **(context or {}),
        )
        response = HTMLResponse(html, status_code=status_code)
        if flash:
            clear_flash(response)
        return response


renderer = JinjaRenderer()


def get_renderer() -> TemplateRenderer:
    """FastAPI dependency, overridden in tests"""
    return renderer
