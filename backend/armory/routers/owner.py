"""Owner area: dashboard and the firearm inventory"""
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from armory.core.database import get_db, in_transaction, soft_delete
from armory.core.errors import NotFound, QuotaExceeded
from armory.core.flash import redirect_with_flash
from armory.core.templates import TemplateRenderer, get_renderer
from armory.models.gun import Gun
from armory.models.user import User
from armory.routers.deps import require_login, wants_json
from armory.schemas.catalog import CaliberInfo
from armory.schemas.gun import GunForm, GunInfo, GunListing
from armory.services import catalog_service, quota_service, tier_policy
from armory.services.catalog_service import CALIBERS, MANUFACTURERS, WEAPON_TYPES

router = APIRouter(prefix="/owner", tags=["owner"])


def _quota_redirect(exc: QuotaExceeded):
    return redirect_with_flash("/pricing", exc.message, "error")


def _get_owned_gun(db: Session, user: User, gun_id: int) -> Gun:
    gun = db.query(Gun).filter(Gun.id == gun_id, Gun.owner_id == user.id).first()
    if gun is None:
        raise NotFound("Gun not found")
    return gun


def _form_context(db: Session) -> dict:
    return {
        "weapon_types": catalog_service.dropdown(db, WEAPON_TYPES),
        "calibers": catalog_service.dropdown(db, CALIBERS),
        "manufacturers": catalog_service.dropdown(db, MANUFACTURERS),
    }


def _gun_form_data(
    name: str = Form(""),
    weapon_type_id: str = Form(""),
    caliber_id: str = Form(""),
    manufacturer_id: str = Form(""),
    acquired: str = Form(""),
    description: str = Form(""),
) -> dict:
    return {
        "name": name,
        "weapon_type_id": weapon_type_id,
        "caliber_id": caliber_id,
        "manufacturer_id": manufacturer_id,
        "acquired": acquired,
        "description": description,
    }


def _validate(db: Session, data: dict) -> tuple[GunForm, str]:
    """Parsed form plus an error message ('' when valid)"""
    try:
        form = GunForm(**data)
    except ValidationError:
        return None, "Please fill in the name, weapon type, caliber and manufacturer"
    for catalog, entry_id in (
        (WEAPON_TYPES, form.weapon_type_id),
        (CALIBERS, form.caliber_id),
        (MANUFACTURERS, form.manufacturer_id),
    ):
        if not catalog_service.exists(db, catalog, entry_id):
            return None, f"Unknown {catalog.label.lower()}"
    return form, ""


@router.get("")
def owner_home(
    request: Request,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    listing = quota_service.list_visible_firearms(db, user)
    return renderer.render(request, "owner/index.html", {
        "user": user,
        "listing": listing,
        "tier_label": tier_policy.label(user.subscription_tier),
        "has_active_subscription": quota_service.has_active_subscription(user),
        "is_lifetime": tier_policy.is_lifetime(user.subscription_tier),
    })


# Registered before /guns/{gun_id} style routes
@router.get("/calibers/search")
def search_calibers(q: str = "", user: User = Depends(require_login), db: Session = Depends(get_db)):
    calibers = catalog_service.search_calibers(db, q)
    return {"calibers": [CaliberInfo.model_validate(c).model_dump() for c in calibers]}


@router.get("/guns")
def list_guns(
    request: Request,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    listing = quota_service.list_visible_firearms(db, user)
    if wants_json(request):
        return GunListing(
            guns=[GunInfo.model_validate(g) for g in listing.items],
            total_count=listing.total_count,
            has_more=listing.has_more,
        )
    return renderer.render(request, "owner/guns/index.html", {
        "user": user,
        "listing": listing,
        "hidden_count": listing.total_count - len(listing.items),
    })


@router.get("/guns/new")
def new_gun(
    request: Request,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    try:
        quota_service.ensure_can_create_firearm(db, user)
    except QuotaExceeded as e:
        return _quota_redirect(e)
    if wants_json(request):
        return {"can_create": True}
    return renderer.render(request, "owner/guns/form.html", {"user": user, "gun": None, **_form_context(db)})


@router.post("/guns")
def create_gun(
    request: Request,
    data: dict = Depends(_gun_form_data),
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    try:
        quota_service.ensure_can_create_firearm(db, user)
    except QuotaExceeded as e:
        return _quota_redirect(e)

    form, error = _validate(db, data)
    if error:
        if wants_json(request):
            return JSONResponse(status_code=400, content={"detail": error})
        return renderer.render(
            request, "owner/guns/form.html",
            {"user": user, "gun": None, "values": data, "error": error, **_form_context(db)},
        )

    def _create(db: Session) -> Gun:
        gun = Gun(owner_id=user.id, **form.model_dump())
        db.add(gun)
        db.flush()
        return gun

    gun = in_transaction(db, _create)
    if wants_json(request):
        return JSONResponse(status_code=201, content=GunInfo.model_validate(gun).model_dump(mode="json"))
    return redirect_with_flash(f"/owner/guns/{gun.id}", "Gun added to your armory.", "success")


@router.get("/guns/{gun_id}")
def show_gun(
    request: Request,
    gun_id: int,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    gun = _get_owned_gun(db, user, gun_id)
    if wants_json(request):
        return GunInfo.model_validate(gun)
    return renderer.render(request, "owner/guns/show.html", {"user": user, "gun": gun})


@router.get("/guns/{gun_id}/edit")
def edit_gun(
    request: Request,
    gun_id: int,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    gun = _get_owned_gun(db, user, gun_id)
    return renderer.render(request, "owner/guns/form.html", {"user": user, "gun": gun, **_form_context(db)})


@router.post("/guns/{gun_id}")
def update_gun(
    request: Request,
    gun_id: int,
    data: dict = Depends(_gun_form_data),
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    gun = _get_owned_gun(db, user, gun_id)
    form, error = _validate(db, data)
    if error:
        if wants_json(request):
            return JSONResponse(status_code=400, content={"detail": error})
        return renderer.render(
            request, "owner/guns/form.html",
            {"user": user, "gun": gun, "values": data, "error": error, **_form_context(db)},
        )

    def _update(db: Session) -> Gun:
        for field, value in form.model_dump().items():
            setattr(gun, field, value)
        return gun

    in_transaction(db, _update)
    if wants_json(request):
        return GunInfo.model_validate(gun)
    return redirect_with_flash(f"/owner/guns/{gun.id}", "Gun updated.", "success")


@router.post("/guns/{gun_id}/delete")
def delete_gun(
    gun_id: int,
    user: User = Depends(require_login),
    db: Session = Depends(get_db),
):
    gun = _get_owned_gun(db, user, gun_id)
    in_transaction(db, lambda db: soft_delete(db, gun))
    return RedirectResponse(url="/owner/guns", status_code=303)
