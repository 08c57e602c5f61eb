"""Reference catalogs: weapon types, calibers, manufacturers"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from armory.core.database import in_transaction, soft_delete
from armory.core.errors import NotFound, ValidationFailed
from armory.models.caliber import Caliber
from armory.models.manufacturer import Manufacturer
from armory.models.weapon_type import WeaponType


@dataclass(frozen=True)
class Catalog:
    """How one catalog is addressed and edited from the admin area"""

    slug: str
    model: type
    name_field: str
    fields: tuple
    label: str

    @property
    def name_column(self):
        return getattr(self.model, self.name_field)


WEAPON_TYPES = Catalog("weapon-types", WeaponType, "type", ("type", "nickname", "popularity"), "Weapon type")
CALIBERS = Catalog("calibers", Caliber, "caliber", ("caliber", "nickname", "popularity"), "Caliber")
MANUFACTURERS = Catalog(
    "manufacturers", Manufacturer, "name", ("name", "nickname", "country", "popularity"), "Manufacturer"
)

CATALOGS = {c.slug: c for c in (WEAPON_TYPES, CALIBERS, MANUFACTURERS)}

SEARCH_DEFAULT_LIMIT = 15
SEARCH_FUZZY_LIMIT = 10
_CALIBER_SHORTHANDS = {"45": "45 ACP", ".45": "45 ACP", "9": "9mm Parabellum"}


def dropdown(db: Session, catalog: Catalog) -> list:
    """Rows in select-box order: most popular first, then by name"""
    return db.query(catalog.model).order_by(catalog.model.popularity.desc(), catalog.name_column.asc()).all()


def list_entries(db: Session, catalog: Catalog) -> list:
    return db.query(catalog.model).order_by(catalog.name_column.asc()).all()


def get_entry(db: Session, catalog: Catalog, entry_id: int):
    entry = db.query(catalog.model).filter(catalog.model.id == entry_id).first()
    if entry is None:
        raise NotFound(f"{catalog.label} not found")
    return entry


def exists(db: Session, catalog: Catalog, entry_id: Optional[int]) -> bool:
    if entry_id is None:
        return False
    return db.query(catalog.model.id).filter(catalog.model.id == entry_id).first() is not None


def _clean(catalog: Catalog, data: dict) -> dict:
    values = {}
    for field in catalog.fields:
        value = data.get(field)
        if field == "popularity":
            try:
                values[field] = int(value or 0)
            except (TypeError, ValueError) as e:
                raise ValidationFailed("Popularity must be a whole number") from e
        else:
            values[field] = (value or "").strip() or None
    if not values[catalog.name_field]:
        raise ValidationFailed(f"{catalog.label} name is required")
    return values


def create_entry(db: Session, catalog: Catalog, data: dict):
    values = _clean(catalog, data)

    def _create(db: Session):
        entry = catalog.model(**values)
        db.add(entry)
        db.flush()
        return entry

    return in_transaction(db, _create)


def update_entry(db: Session, catalog: Catalog, entry_id: int, data: dict):
    values = _clean(catalog, data)

    def _update(db: Session):
        entry = get_entry(db, catalog, entry_id)
        for field, value in values.items():
            setattr(entry, field, value)
        return entry

    return in_transaction(db, _update)


def delete_entry(db: Session, catalog: Catalog, entry_id: int) -> None:
    def _delete(db: Session):
        soft_delete(db, get_entry(db, catalog, entry_id))

    in_transaction(db, _delete)


def search_calibers(db: Session, q: str) -> list:
    """Exact match, then prefix, then common shorthands, then a fuzzy LIKE"""
    q = (q or "").strip()
    query = db.query(Caliber)
    by_popularity = (Caliber.popularity.desc(), Caliber.caliber.asc())

    if not q:
        return query.order_by(*by_popularity).limit(SEARCH_DEFAULT_LIMIT).all()

    found = query.filter(or_(Caliber.caliber == q, Caliber.nickname == q)).all()
    if found:
        return found

    found = query.filter(or_(Caliber.caliber.like(f"{q}%"), Caliber.nickname == q)).all()
    if found:
        return found

    if q in _CALIBER_SHORTHANDS:
        return query.filter(Caliber.caliber == _CALIBER_SHORTHANDS[q]).all()

    pattern = f"%{q}%"
    return (
        query.filter(or_(Caliber.caliber.like(pattern), Caliber.nickname.like(pattern)))
        .order_by(*by_popularity)
        .limit(SEARCH_FUZZY_LIMIT)
        .all()
    )
