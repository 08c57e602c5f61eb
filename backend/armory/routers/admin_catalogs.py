"""Admin CRUD for the reference catalogs (manufacturers, calibers, weapon types)"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from armory.core.database import get_db
from armory.core.errors import AlreadyExists, ValidationFailed
from armory.core.flash import redirect_with_flash
from armory.core.templates import TemplateRenderer, get_renderer
from armory.models.user import User
from armory.routers.deps import require_admin
from armory.services import catalog_service
from armory.services.catalog_service import CATALOGS, Catalog

router = APIRouter(prefix="/admin", tags=["admin-catalogs"])


async def _form_data(request: Request) -> dict:
    return dict(await request.form())


def _context(catalog: Catalog, user: User, **extra) -> dict:
    return {"catalog": catalog, "user": user, **extra}


def _register(catalog: Catalog) -> None:
    base = f"/{catalog.slug}"
    index_url = f"/admin{base}"

    def list_entries(
        request: Request,
        user: User = Depends(require_admin),
        db: Session = Depends(get_db),
        renderer: TemplateRenderer = Depends(get_renderer),
    ):
        entries = catalog_service.list_entries(db, catalog)
        return renderer.render(request, "admin/catalog/index.html", _context(catalog, user, entries=entries))

    def new_entry(
        request: Request,
        user: User = Depends(require_admin),
        renderer: TemplateRenderer = Depends(get_renderer),
    ):
        return renderer.render(request, "admin/catalog/form.html", _context(catalog, user, entry=None, values={}))

    def create_entry(
        request: Request,
        data: dict = Depends(_form_data),
        user: User = Depends(require_admin),
        db: Session = Depends(get_db),
        renderer: TemplateRenderer = Depends(get_renderer),
    ):
        try:
            entry = catalog_service.create_entry(db, catalog, data)
        except (ValidationFailed, AlreadyExists) as e:
            message = e.message if isinstance(e, ValidationFailed) else f"{catalog.label} already exists"
            return renderer.render(
                request, "admin/catalog/form.html",
                _context(catalog, user, entry=None, values=data, error=message),
                status_code=400,
            )
        return redirect_with_flash(f"{index_url}/{entry.id}", f"{catalog.label} created.", "success")

    def show_entry(
        request: Request,
        entry_id: int,
        user: User = Depends(require_admin),
        db: Session = Depends(get_db),
        renderer: TemplateRenderer = Depends(get_renderer),
    ):
        entry = catalog_service.get_entry(db, catalog, entry_id)
        return renderer.render(request, "admin/catalog/show.html", _context(catalog, user, entry=entry))

    def edit_entry(
        request: Request,
        entry_id: int,
        user: User = Depends(require_admin),
        db: Session = Depends(get_db),
        renderer: TemplateRenderer = Depends(get_renderer),
    ):
        entry = catalog_service.get_entry(db, catalog, entry_id)
        values = {field: getattr(entry, field) for field in catalog.fields}
        return renderer.render(request, "admin/catalog/form.html", _context(catalog, user, entry=entry, values=values))

    def update_entry(
        request: Request,
        entry_id: int,
        data: dict = Depends(_form_data),
        user: User = Depends(require_admin),
        db: Session = Depends(get_db),
        renderer: TemplateRenderer = Depends(get_renderer),
    ):
        try:
            entry = catalog_service.update_entry(db, catalog, entry_id, data)
        except (ValidationFailed, AlreadyExists) as e:
            message = e.message if isinstance(e, ValidationFailed) else f"{catalog.label} already exists"
            entry = catalog_service.get_entry(db, catalog, entry_id)
            return renderer.render(
                request, "admin/catalog/form.html",
                _context(catalog, user, entry=entry, values=data, error=message),
                status_code=400,
            )
        return redirect_with_flash(f"{index_url}/{entry.id}", f"{catalog.label} updated.", "success")

    def delete_entry(
        entry_id: int,
        user: User = Depends(require_admin),
        db: Session = Depends(get_db),
    ):
        catalog_service.delete_entry(db, catalog, entry_id)
        return redirect_with_flash(index_url, f"{catalog.label} deleted.", "success")

    name = catalog.slug.replace("-", "_")
    router.add_api_route(base, list_entries, methods=["GET"], name=f"{name}_index")
    router.add_api_route(f"{base}/new", new_entry, methods=["GET"], name=f"{name}_new")
    router.add_api_route(base, create_entry, methods=["POST"], name=f"{name}_create")
    router.add_api_route(f"{base}/{{entry_id}}", show_entry, methods=["GET"], name=f"{name}_show")
    router.add_api_route(f"{base}/{{entry_id}}/edit", edit_entry, methods=["GET"], name=f"{name}_edit")
    router.add_api_route(f"{base}/{{entry_id}}", update_entry, methods=["POST"], name=f"{name}_update")
    router.add_api_route(f"{base}/{{entry_id}}/delete", delete_entry, methods=["POST"], name=f"{name}_delete")


for _catalog in CATALOGS.values():
    _register(_catalog)
